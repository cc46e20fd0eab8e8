"""
Structural flattening of nested API response objects.

``flatten({"a": {"b": 1, "c": [2, 3]}, "d": 4})``
    → ``{"a.b": 1, "a.c": [2, 3], "d": 4}``

Leaf rule: only mappings are descended into.  Lists, tuples and scalars
(including ``None``) are leaves and are kept as-is at their dotted path.
A scalar passed at the top level is returned unchanged.  An empty mapping
nested inside another contributes no keys.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any


def is_branch(value: Any) -> bool:
    """True if ``value`` is a mapping that ``flatten`` descends into."""
    return isinstance(value, Mapping)


def flatten(value: Any, prefix: str = "") -> Any:
    """Flatten nested mappings into a single-level dict with dotted keys.

    Never mutates ``value``; a new dict is built on every call.  Iterative,
    so nesting depth is not bounded by the interpreter's recursion limit.

    Args:
        value:  Mapping to flatten, or any scalar.
        prefix: Dotted path to prepend to every key (empty at top level).

    Returns:
        A new ``dict[str, Any]`` for mapping input, otherwise ``value``
        itself when no prefix is given, or ``{prefix: value}`` when one is.
    """
    if not is_branch(value):
        return {prefix: value} if prefix else value

    flat: dict[str, Any] = {}
    # Depth-first over live iterators so output keys keep source order.
    stack: list[tuple[str, Iterator[tuple[Any, Any]]]] = [(prefix, iter(value.items()))]
    while stack:
        path, items = stack[-1]
        for key, child in items:
            child_path = f"{path}.{key}" if path else str(key)
            if is_branch(child):
                stack.append((child_path, iter(child.items())))
                break
            flat[child_path] = child
        else:
            stack.pop()
    return flat
