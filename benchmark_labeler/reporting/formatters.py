"""
ASCII terminal formatters for CLI output.

All formatters return plain multi-line strings suitable for ``typer.echo()``.
No third-party dependencies.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from benchmark_labeler.models.rows import Table


def _cell(value: Any, width: int) -> str:
    if isinstance(value, float):
        text = f"{value:.4f}"
    else:
        text = str(value)
    if len(text) > width:
        text = text[: width - 1] + "~"
    return f"{text:<{width}}"


def format_table_preview(table: Table, limit: int = 10, width: int = 14) -> str:
    """Render the header and first ``limit`` rows of ``table``.

    Example::

        === benchmark data (3 rows) ===
          id              title           brand  ...
          --------------------------------------------
          O1              T               B      ...
    """
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {table.name} ({len(table.rows)} rows) ===")
    if not table.rows:
        lines.append("  (no rows)")
        return "\n".join(lines)

    header = "  " + " ".join(_cell(col, width) for col in table.header)
    lines.append(header.rstrip())
    lines.append("  " + "-" * (len(header) - 2))
    for row in table.rows[:limit]:
        lines.append(("  " + " ".join(_cell(v, width) for v in row)).rstrip())
    if len(table.rows) > limit:
        lines.append(f"  ... and {len(table.rows) - limit} more.")
    return "\n".join(lines)


def format_label_counts(labels: list[str]) -> str:
    """One line per label with its row count, most frequent first."""
    if not labels:
        return "  (no labeled products)"
    counts = Counter(labels)
    return "\n".join(f"  {label:<24} {n:>6}" for label, n in counts.most_common())


def format_skip_summary(skipped: dict[str, int]) -> str:
    """One line per skip reason, alphabetical."""
    if not skipped:
        return "  (nothing skipped)"
    return "\n".join(f"  {reason:<24} {skipped[reason]:>6}" for reason in sorted(skipped))
