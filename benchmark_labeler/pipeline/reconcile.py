"""
Reconciler — join benchmark, product and stats feeds into labeled rows.

For each ``BenchmarkRecord`` in fetch order (never re-sorted):

  1. Skip if ``benchmark_price_micros <= 0`` or no ``ProductRecord`` exists
     for its ``product_id``.
  2. ``relative_price = price / benchmark - 1``; classify into a zone and
     map the zone to its configured label name.
  3. Skip unless the label is non-empty and in ``labels.export_labels``,
     the product's availability is exactly ``"in stock"``, and the stock
     gate passes.
  4. Look up ``StatRecord`` by ``offer_id`` (not ``product_id``); missing
     stats count as 0 impressions / 0 clicks.
  5. Emit one ``DetailRow`` and one ``SupplementalRow``.

Skips are counted per reason in ``ReconcileResult.skipped`` and logged.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from benchmark_labeler.config import AppConfig
from benchmark_labeler.models.records import BenchmarkRecord, ProductRecord, StatRecord
from benchmark_labeler.models.rows import DetailRow, SupplementalRow
from benchmark_labeler.pricing.classifier import (
    classify,
    passes_stock_policy,
    relative_price,
)

logger = logging.getLogger(__name__)

SKIP_NO_BENCHMARK = "no_benchmark_price"
SKIP_NO_PRODUCT = "no_product_record"
SKIP_LABEL_NOT_EXPORTED = "label_not_exported"
SKIP_NOT_IN_STOCK = "not_in_stock"
SKIP_BELOW_STOCK_THRESHOLD = "below_stock_threshold"


@dataclass
class ReconcileResult:
    """Rows produced by one reconciliation pass.

    Attributes:
        detail_rows:       Labeled rows for the benchmark detail table.
        supplemental_rows: ``(offer id, label)`` rows for the supplemental feed.
        input_count:       Benchmark records considered.
        skipped:           Count of excluded records per skip reason.
    """

    detail_rows:       list[DetailRow] = field(default_factory=list)
    supplemental_rows: list[SupplementalRow] = field(default_factory=list)
    input_count:       int = 0
    skipped:           Counter = field(default_factory=Counter)

    @property
    def is_empty(self) -> bool:
        return not self.detail_rows


class Reconciler:
    """Applies the eligibility filters and derives the output fields.

    Args:
        config: Application config; only ``labels`` and ``stock`` are read.
    """

    def __init__(self, config: AppConfig) -> None:
        self.labels = config.labels
        self.stock = config.stock
        self._allowed = frozenset(label for label in self.labels.export_labels if label)

    def label_for(self, rel: float) -> str:
        """Classify ``rel`` with the configured thresholds and return the label name."""
        zone = classify(
            rel,
            self.labels.below_threshold,
            self.labels.at_threshold,
            self.labels.above_threshold,
        )
        return self.labels.name_for(zone)

    def reconcile(
        self,
        benchmarks: Sequence[BenchmarkRecord],
        products: Mapping[str, ProductRecord],
        stats: Mapping[str, StatRecord],
    ) -> ReconcileResult:
        """Join the three feeds and return the eligible, labeled rows.

        Args:
            benchmarks: Benchmark records in fetch order.
            products:   Product records keyed by product id.
            stats:      Stat records keyed by offer id.

        Returns:
            ``ReconcileResult``; both row lists are empty if ``benchmarks`` is.
        """
        result = ReconcileResult(input_count=len(benchmarks))
        if not benchmarks:
            logger.info("No price benchmark data retrieved")
            return result

        for record in benchmarks:
            if record.benchmark_price_micros <= 0:
                result.skipped[SKIP_NO_BENCHMARK] += 1
                continue
            product = products.get(record.product_id)
            if product is None:
                result.skipped[SKIP_NO_PRODUCT] += 1
                continue

            rel = relative_price(record.price_micros, record.benchmark_price_micros)
            label = self.label_for(rel)

            if not label or label not in self._allowed:
                result.skipped[SKIP_LABEL_NOT_EXPORTED] += 1
                continue
            if not product.is_in_stock:
                result.skipped[SKIP_NOT_IN_STOCK] += 1
                continue
            if not passes_stock_policy(product.stock_quantity, self.stock):
                result.skipped[SKIP_BELOW_STOCK_THRESHOLD] += 1
                continue

            stat = stats.get(record.offer_id)
            result.detail_rows.append(
                DetailRow(
                    offer_id=record.offer_id,
                    title=record.title,
                    brand=record.brand,
                    price=record.price,
                    currency_code=record.currency_code,
                    country_code=record.country_code,
                    benchmark_price=record.benchmark_price,
                    relative_price=rel,
                    label=label,
                    impressions=stat.impressions if stat else 0,
                    clicks=stat.clicks if stat else 0,
                    stock_quantity=product.stock_quantity if self.stock.enabled else None,
                )
            )
            result.supplemental_rows.append(SupplementalRow(record.offer_id, label))

        logger.info(
            "Reconciled %d benchmark records | labeled=%d | skipped=%s",
            result.input_count, len(result.detail_rows), dict(result.skipped),
        )
        return result
