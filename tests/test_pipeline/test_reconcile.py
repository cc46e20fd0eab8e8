"""
Tests for pipeline/reconcile.py — Reconciler.

Covers:
  - The worked example: one product 10% over benchmark labeled "Above"
  - Each exclusion filter and its skip counter
  - Stats joined by offer id with a 0/0 default
  - Stock column populated only when stock tracking is on
  - Fetch order preserved
"""

from __future__ import annotations

import pytest

from benchmark_labeler.config import LabelConfig, StockConfig
from benchmark_labeler.models.records import BenchmarkRecord, ProductRecord, StatRecord
from benchmark_labeler.pipeline.reconcile import (
    SKIP_BELOW_STOCK_THRESHOLD,
    SKIP_LABEL_NOT_EXPORTED,
    SKIP_NO_BENCHMARK,
    SKIP_NO_PRODUCT,
    SKIP_NOT_IN_STOCK,
    Reconciler,
)

LABELS = LabelConfig(
    below_threshold=-0.1,
    at_threshold=0.05,
    above_threshold=0.05,
    below_name="Below",
    at_name="At",
    above_name="Above",
    export_labels=["Above"],
)


def _bench(pid: str, offer: str, price: int, benchmark: int = 1_000_000) -> BenchmarkRecord:
    return BenchmarkRecord(
        product_id=pid,
        offer_id=offer,
        title=f"title {offer}",
        brand="B",
        price_micros=price,
        currency_code="USD",
        benchmark_price_micros=benchmark,
        country_code="US",
    )


@pytest.fixture
def reconciler(make_config):
    return Reconciler(make_config(labels=LABELS))


# ── Worked example ────────────────────────────────────────────────────────────


class TestWorkedExample:
    def test_single_above_row(self, reconciler, sample_benchmark, sample_product, sample_stat):
        result = reconciler.reconcile(
            [sample_benchmark], {"1": sample_product}, {"O1": sample_stat}
        )

        assert len(result.detail_rows) == 1
        row = result.detail_rows[0].as_list(include_stock=False)
        assert row[:3] == ["O1", "T", "B"]
        assert row[3] == pytest.approx(1.1)
        assert row[4:6] == ["USD", "US"]
        assert row[6] == pytest.approx(1.0)
        assert row[7] == pytest.approx(0.1)
        assert row[8:] == ["Above", 10, 2]

        assert [r.as_list() for r in result.supplemental_rows] == [["O1", "Above"]]
        assert result.input_count == 1
        assert not result.skipped

    def test_empty_input(self, reconciler, caplog):
        with caplog.at_level("INFO"):
            result = reconciler.reconcile([], {}, {})
        assert result.is_empty
        assert result.supplemental_rows == []
        assert "No price benchmark data retrieved" in caplog.text


# ── Exclusions ────────────────────────────────────────────────────────────────


class TestExclusions:
    def test_zero_benchmark_skipped(self, reconciler, sample_product):
        result = reconciler.reconcile(
            [_bench("1", "O1", 1_100_000, benchmark=0)], {"1": sample_product}, {}
        )
        assert result.is_empty
        assert result.skipped[SKIP_NO_BENCHMARK] == 1

    def test_missing_product_skipped(self, reconciler):
        result = reconciler.reconcile([_bench("1", "O1", 1_100_000)], {}, {})
        assert result.is_empty
        assert result.skipped[SKIP_NO_PRODUCT] == 1

    def test_label_not_in_allow_list(self, reconciler):
        products = {"1": ProductRecord(product_id="1", availability="in stock")}
        # 0.0 relative price → "At", not exported
        result = reconciler.reconcile([_bench("1", "O1", 1_000_000)], products, {})
        assert result.is_empty
        assert result.skipped[SKIP_LABEL_NOT_EXPORTED] == 1

    def test_gap_zone_has_no_label(self, make_config):
        labels = LABELS.model_copy(update={"above_threshold": 0.2, "export_labels": ("Above", "At")})
        reconciler = Reconciler(make_config(labels=labels))
        products = {"1": ProductRecord(product_id="1", availability="in stock")}
        result = reconciler.reconcile([_bench("1", "O1", 1_100_000)], products, {})
        assert result.skipped[SKIP_LABEL_NOT_EXPORTED] == 1

    def test_availability_must_be_exactly_in_stock(self, reconciler):
        products = {
            "1": ProductRecord(product_id="1", availability="In Stock"),
            "2": ProductRecord(product_id="2", availability="out of stock"),
        }
        result = reconciler.reconcile(
            [_bench("1", "O1", 1_100_000), _bench("2", "O2", 1_100_000)], products, {}
        )
        assert result.is_empty
        assert result.skipped[SKIP_NOT_IN_STOCK] == 2

    def test_stock_threshold(self, make_config):
        reconciler = Reconciler(
            make_config(labels=LABELS, stock=StockConfig(enabled=True, threshold=5))
        )
        products = {
            "1": ProductRecord(product_id="1", availability="in stock", stock_quantity="4"),
            "2": ProductRecord(product_id="2", availability="in stock", stock_quantity="5"),
            "3": ProductRecord(product_id="3", availability="in stock", stock_quantity=""),
        }
        benchmarks = [_bench(pid, f"O{pid}", 1_100_000) for pid in ("1", "2", "3")]
        result = reconciler.reconcile(benchmarks, products, {})

        assert [r.offer_id for r in result.detail_rows] == ["O2"]
        assert result.detail_rows[0].stock_quantity == "5"
        assert result.skipped[SKIP_BELOW_STOCK_THRESHOLD] == 2


# ── Joins and ordering ────────────────────────────────────────────────────────


class TestJoins:
    def test_stats_joined_by_offer_id_not_product_id(self, reconciler):
        products = {"online:en:US:O1": ProductRecord(product_id="online:en:US:O1", availability="in stock")}
        stats = {
            "online:en:US:O1": StatRecord(offer_id="online:en:US:O1", impressions=99, clicks=99),
            "O1": StatRecord(offer_id="O1", impressions=3, clicks=1),
        }
        result = reconciler.reconcile([_bench("online:en:US:O1", "O1", 1_100_000)], products, stats)
        row = result.detail_rows[0]
        assert (row.impressions, row.clicks) == (3, 1)

    def test_missing_stats_default_to_zero(self, reconciler, sample_benchmark, sample_product):
        result = reconciler.reconcile([sample_benchmark], {"1": sample_product}, {})
        row = result.detail_rows[0]
        assert (row.impressions, row.clicks) == (0, 0)

    def test_stock_quantity_only_when_tracking_on(self, reconciler, sample_benchmark, sample_product):
        result = reconciler.reconcile([sample_benchmark], {"1": sample_product}, {})
        assert result.detail_rows[0].stock_quantity is None

    def test_fetch_order_preserved(self, reconciler):
        benchmarks = [_bench(pid, f"O{pid}", price) for pid, price in
                      (("3", 1_500_000), ("1", 1_100_000), ("2", 2_000_000))]
        products = {pid: ProductRecord(product_id=pid, availability="in stock") for pid in "123"}
        result = reconciler.reconcile(benchmarks, products, {})
        assert [r.offer_id for r in result.detail_rows] == ["O3", "O1", "O2"]
        assert [r.offer_id for r in result.supplemental_rows] == ["O3", "O1", "O2"]

    def test_label_for(self, reconciler):
        assert reconciler.label_for(-0.2) == "Below"
        assert reconciler.label_for(0.0) == "At"
        assert reconciler.label_for(0.3) == "Above"
        assert reconciler.label_for(0.05) == ""
