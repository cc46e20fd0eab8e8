"""
BenchmarkLabelStage — the full labeling run.

Steps
-----
  1. Download the price-competitiveness report for the configured country
     and currency → ``BenchmarkRecord`` list (fetch order kept).
  2. Collect the unique product ids, first-seen order.
  3. Download last-30-day impressions/clicks for those offers →
     ``StatRecord`` map keyed by offer id (empty map when nothing matched).
  4. Batch-look-up availability/stock for the product ids →
     ``ProductRecord`` map keyed by product id.  No product ids at all
     raises ``EmptyInputError`` and aborts the run.
  5. Reconcile, project into tables, and write each table (clear-then-write)
     with its last-updated stamp.

Nothing is written unless steps 1–5 complete; any fetch failure aborts the
run with the previous output left untouched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from benchmark_labeler.config import AppConfig
from benchmark_labeler.ingestion.merchant_client import (
    MerchantCenterClient,
    batch_get_products,
    download_report,
)
from benchmark_labeler.models.meta import RunMetadata
from benchmark_labeler.models.records import BenchmarkRecord, StatRecord
from benchmark_labeler.models.rows import TableSet
from benchmark_labeler.pipeline.base import PipelineStage
from benchmark_labeler.pipeline.queries import (
    benchmark_query,
    offer_id_from_product_id,
    performance_query,
)
from benchmark_labeler.pipeline.reconcile import Reconciler, ReconcileResult
from benchmark_labeler.reporting.export import write_tables
from benchmark_labeler.reporting.projector import project

logger = logging.getLogger(__name__)


def fetch_benchmarks(client: MerchantCenterClient, config: AppConfig) -> list[BenchmarkRecord]:
    """Download and type the benchmark report rows."""
    query = benchmark_query(config.merchant.country_filter, config.merchant.currency_filter)
    logger.info("Getting price benchmark stats for account %s", client.merchant_id)
    fetched = download_report(client, query, config.api.report_retry, config.api.page_size)
    return [BenchmarkRecord.from_report_row(row) for row in fetched.records]


def unique_product_ids(benchmarks: list[BenchmarkRecord]) -> list[str]:
    """Product ids of ``benchmarks``, de-duplicated in first-seen order."""
    return list(dict.fromkeys(b.product_id for b in benchmarks))


def fetch_stats(
    client: MerchantCenterClient,
    config: AppConfig,
    product_ids: list[str],
) -> dict[str, StatRecord]:
    """Download performance metrics for the offers behind ``product_ids``.

    Returns:
        Mapping of offer id → ``StatRecord``; ``{}`` when there are no ids or
        the report returns no rows.
    """
    if not product_ids:
        return {}
    offer_ids = [offer_id_from_product_id(pid) for pid in product_ids]
    query = performance_query(offer_ids, config.merchant.country_filter)
    logger.info("Getting performance data for account %s", client.merchant_id)
    fetched = download_report(client, query, config.api.report_retry, config.api.page_size)

    stats: dict[str, StatRecord] = {}
    for row in fetched.records:
        stat = StatRecord.from_report_row(row)
        stats[stat.offer_id] = stat
    return stats


class BenchmarkLabelStage(PipelineStage):
    """Fetch, reconcile and write the benchmark detail and supplemental tables.

    After ``run()`` the stage exposes ``result`` (the ``ReconcileResult``),
    ``tables`` (the projected ``TableSet``) and ``written`` (file paths) for
    CLI reporting.

    Args:
        config: Application config.
        client: Merchant Center client bound to ``config.merchant.merchant_id``.
    """

    stage_name = "benchmark_labels"

    def __init__(self, config: AppConfig, client: MerchantCenterClient) -> None:
        super().__init__(config)
        self.client = client
        self.result: Optional[ReconcileResult] = None
        self.tables: TableSet = TableSet()
        self.written: list[Path] = []

    def _execute(self, run: RunMetadata, write: bool = True, **kwargs) -> int:
        """Run the labeling pass.

        Args:
            run:   In-progress ``RunMetadata``.
            write: When False, build the tables but do not touch the output
                   directory.

        Returns:
            Number of labeled detail rows.
        """
        cfg = self.config

        benchmarks = fetch_benchmarks(self.client, cfg)
        product_ids = unique_product_ids(benchmarks)
        stats = fetch_stats(self.client, cfg, product_ids)
        products = batch_get_products(
            self.client, product_ids, cfg.api.batch_size, cfg.stock
        )

        run.source_counts = {
            "benchmarks": len(benchmarks),
            "stats": len(stats),
            "products": len(products),
        }

        self.result = Reconciler(cfg).reconcile(benchmarks, products, stats)
        run.skipped = dict(self.result.skipped)
        self.tables = project(
            self.result.detail_rows,
            self.result.supplemental_rows,
            stock_enabled=cfg.stock.enabled,
            label_export_enabled=cfg.labels.activate_labels,
            label_column=cfg.labels.label_column,
            stock_column=cfg.stock.attribute,
            detail_table=cfg.output.benchmark_table,
            supplemental_table=cfg.output.supplemental_table,
            generated_at=run.started_at,
        )
        if write:
            self.written = write_tables(
                self.tables, Path(cfg.output.output_dir), cfg.output.timezone
            )
            run.tables_written = list(self.tables.tables)
        return len(self.result.detail_rows)
