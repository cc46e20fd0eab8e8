"""
Tests for pricing/classifier.py — relative_price(), classify(), stock gate.

Covers:
  - Boundary table with below=-0.1, at=0.05, above=0.05
  - The unlabeled gap [at, above] when above > at
  - Stock coercion of strings, NaN, empty and non-numeric values
  - passes_stock_policy with tracking on and off
"""

from __future__ import annotations

import math

import pytest

from benchmark_labeler.config import StockConfig
from benchmark_labeler.pricing.classifier import (
    PriceZone,
    classify,
    coerce_stock_quantity,
    passes_stock_policy,
    relative_price,
)

BELOW, AT, ABOVE = -0.1, 0.05, 0.05


# ── relative_price ────────────────────────────────────────────────────────────


def test_relative_price_over_benchmark() -> None:
    assert relative_price(1_100_000, 1_000_000) == pytest.approx(0.1)


def test_relative_price_under_benchmark() -> None:
    assert relative_price(900_000, 1_000_000) == pytest.approx(-0.1)


def test_relative_price_zero_benchmark_raises() -> None:
    with pytest.raises(ZeroDivisionError):
        relative_price(1_000_000, 0)


# ── classify ──────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "rel, expected",
    [
        (-0.15, PriceZone.BELOW),
        (-0.1, PriceZone.NONE),      # below is strict, and -0.1 < -at
        (-0.05, PriceZone.AT),       # lower edge of the at band is inclusive
        (0.0, PriceZone.AT),
        (0.0499, PriceZone.AT),
        (0.05, PriceZone.NONE),      # upper edge excluded from at, above is strict
        (0.0501, PriceZone.ABOVE),
        (1.0, PriceZone.ABOVE),
    ],
)
def test_classify_boundaries(rel: float, expected: PriceZone) -> None:
    assert classify(rel, BELOW, AT, ABOVE) is expected


def test_classify_gap_between_at_and_above_is_unlabeled() -> None:
    assert classify(0.07, -0.1, 0.05, 0.1) is PriceZone.NONE
    assert classify(0.1, -0.1, 0.05, 0.1) is PriceZone.NONE
    assert classify(0.11, -0.1, 0.05, 0.1) is PriceZone.ABOVE


def test_classify_below_checked_before_at() -> None:
    # Overlapping config: at band wider than the below threshold.
    assert classify(-0.15, -0.1, 0.2, 0.2) is PriceZone.BELOW


def test_classify_zero_width_at_band_never_matches() -> None:
    assert classify(0.0, -0.1, 0.0, 0.05) is PriceZone.NONE


# ── Stock gate ────────────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "value, expected",
    [
        (5, 5.0),
        (2.5, 2.5),
        ("7", 7.0),
        (" 3 ", 3.0),
        ("", 0.0),
        ("abc", 0.0),
        (None, 0.0),
        (float("nan"), 0.0),
        ("nan", 0.0),
    ],
)
def test_coerce_stock_quantity(value, expected) -> None:
    result = coerce_stock_quantity(value)
    assert not math.isnan(result)
    assert result == expected


def test_stock_policy_disabled_always_passes() -> None:
    stock = StockConfig(enabled=False, threshold=100)
    assert passes_stock_policy("", stock)
    assert passes_stock_policy(0, stock)


def test_stock_policy_threshold_is_inclusive() -> None:
    stock = StockConfig(enabled=True, threshold=5)
    assert passes_stock_policy(5, stock)
    assert passes_stock_policy("6", stock)
    assert not passes_stock_policy(4, stock)


def test_stock_policy_non_numeric_counts_as_zero() -> None:
    assert passes_stock_policy("n/a", StockConfig(enabled=True, threshold=0))
    assert not passes_stock_policy("n/a", StockConfig(enabled=True, threshold=1))
