"""
Price-zone classification against a benchmark price.

``relative_price = price / benchmark - 1``.  ``classify()`` places a relative
price into one of three zones, evaluated in this exact order:

  1. ``rp <  below``                    → BELOW
  2. ``-at <= rp < at``                 → AT    (lower edge inclusive)
  3. ``rp >  above``                    → ABOVE (strict)
  4. otherwise                          → NONE

``at`` and ``above`` are configured independently.  When ``above > at`` the
interval ``[at, above]`` gets no label; this is kept as configured.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from benchmark_labeler.config import StockConfig


class PriceZone(str, Enum):
    """Zone of a product price relative to its benchmark."""

    BELOW = "below"
    AT = "at"
    ABOVE = "above"
    NONE = "none"


def relative_price(price_micros: int | float, benchmark_price_micros: int | float) -> float:
    """Return ``price / benchmark - 1``.

    Raises:
        ZeroDivisionError: If ``benchmark_price_micros`` is 0.  Callers filter
            non-positive benchmarks out before getting here.
    """
    return price_micros / benchmark_price_micros - 1


def classify(
    relative: float,
    below_threshold: float,
    at_threshold: float,
    above_threshold: float,
) -> PriceZone:
    """Classify a relative price into a ``PriceZone``.

    Args:
        relative:        ``price / benchmark - 1``.
        below_threshold: Upper bound (exclusive) of the BELOW zone; <= 0.
        at_threshold:    Half-width of the AT band ``[-at, at)``; >= 0.
        above_threshold: Lower bound (exclusive) of the ABOVE zone; >= 0.

    Returns:
        The first matching zone, or ``PriceZone.NONE``.
    """
    if relative < below_threshold:
        return PriceZone.BELOW
    if -at_threshold <= relative < at_threshold:
        return PriceZone.AT
    if relative > above_threshold:
        return PriceZone.ABOVE
    return PriceZone.NONE


def coerce_stock_quantity(value: Any) -> float:
    """Read a stock attribute value as a number; empty or non-numeric → 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        qty = float(value)
    else:
        try:
            qty = float(str(value).strip())
        except ValueError:
            return 0.0
    return 0.0 if math.isnan(qty) else qty


def passes_stock_policy(stock_quantity: Any, stock: "StockConfig") -> bool:
    """Return True when the product clears the configured stock gate.

    Always True when stock tracking is disabled.
    """
    if not stock.enabled:
        return True
    return coerce_stock_quantity(stock_quantity) >= stock.threshold
