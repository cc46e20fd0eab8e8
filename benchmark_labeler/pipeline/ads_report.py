"""
AdsReportStage — daily ads performance per custom label.

Shows how products perform once the labels written by
``BenchmarkLabelStage`` have been picked up by shopping campaigns.

  1. Search ``shopping_performance_view`` for the trailing
     ``ads.lookback_days`` window ending yesterday, segmented by date and
     ``product_custom_attribute1``.
  2. Aggregate into one row per (date, label), in first-seen order.
  3. Write the ``ads data`` table (clear-then-write) with its stamp.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from benchmark_labeler.config import AppConfig
from benchmark_labeler.ingestion.ads_client import GoogleAdsClient
from benchmark_labeler.models.meta import RunMetadata
from benchmark_labeler.models.records import AdsMetricRecord
from benchmark_labeler.models.rows import Table
from benchmark_labeler.pipeline.base import PipelineStage
from benchmark_labeler.pipeline.queries import ads_performance_query, ads_performance_window
from benchmark_labeler.reporting.export import write_table
from benchmark_labeler.utils.time_utils import today_in

logger = logging.getLogger(__name__)

ADS_HEADERS = [
    "date", "productCustomAttribute1", "clicks", "impressions", "cost", "avgCpc",
    "conversions", "conversionsValue", "allConversions", "allConversionsValue",
]


@dataclass
class _LabelDay:
    """Running totals for one (date, label) bucket."""

    date: str
    label: str
    clicks: int = 0
    impressions: int = 0
    cost: float = 0.0
    conversions: float = 0.0
    conversions_value: float = 0.0
    all_conversions: float = 0.0
    all_conversions_value: float = 0.0

    def add(self, rec: AdsMetricRecord) -> None:
        self.clicks += rec.clicks
        self.impressions += rec.impressions
        self.cost += rec.cost
        self.conversions += rec.conversions
        self.conversions_value += rec.conversions_value
        self.all_conversions += rec.all_conversions
        self.all_conversions_value += rec.all_conversions_value

    def as_list(self) -> list:
        avg_cpc = self.cost / self.clicks if self.clicks else 0.0
        return [
            self.date, self.label, self.clicks, self.impressions, self.cost, avg_cpc,
            self.conversions, self.conversions_value,
            self.all_conversions, self.all_conversions_value,
        ]


def aggregate_by_label_day(records: Iterable[AdsMetricRecord]) -> list[list]:
    """Sum metrics per (date, label); rows without a label are dropped.

    ``avgCpc`` is recomputed as ``cost / clicks`` for the bucket.
    """
    buckets: dict[tuple[str, str], _LabelDay] = {}
    for rec in records:
        if not rec.label:
            continue
        key = (rec.date, rec.label)
        if key not in buckets:
            buckets[key] = _LabelDay(date=rec.date, label=rec.label)
        buckets[key].add(rec)
    return [bucket.as_list() for bucket in buckets.values()]


class AdsReportStage(PipelineStage):
    """Fetch and write the per-label daily ads performance table.

    Args:
        config: Application config (``ads`` and ``output`` sections).
        client: Ads search client.
    """

    stage_name = "ads_report"

    def __init__(self, config: AppConfig, client: GoogleAdsClient) -> None:
        super().__init__(config)
        self.client = client
        self.table: Optional[Table] = None
        self.written: Optional[Path] = None

    def _execute(
        self,
        run: RunMetadata,
        today: Optional[date] = None,
        write: bool = True,
        **kwargs,
    ) -> int:
        """Run the report.

        Args:
            run:   In-progress ``RunMetadata``.
            today: Reference date (defaults to today in ``output.timezone``).
            write: When False, build the table without writing it.

        Returns:
            Number of (date, label) rows.
        """
        cfg = self.config
        if not cfg.ads.customer_id:
            raise ValueError("ads.customer_id must be set to run the ads report.")

        first_day, last_day = ads_performance_window(
            today or today_in(cfg.output.timezone), cfg.ads.lookback_days
        )
        query = ads_performance_query(first_day, last_day)
        logger.info(
            "Getting ads performance for customer %s | %s → %s",
            cfg.ads.customer_id, first_day, last_day,
        )
        fetched = self.client.execute_search(query, cfg.ads.customer_id)
        records = [AdsMetricRecord.from_search_row(row) for row in fetched.records]
        run.source_counts = {"ads_rows": len(records)}

        self.table = Table(
            name=cfg.output.ads_table,
            header=list(ADS_HEADERS),
            rows=aggregate_by_label_day(records),
            generated_at=run.started_at,
        )
        if write:
            self.written = write_table(
                self.table, Path(cfg.output.output_dir), cfg.output.timezone
            )
            run.tables_written = [self.table.name]
        return len(self.table.rows)
