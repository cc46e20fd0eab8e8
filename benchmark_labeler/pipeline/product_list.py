"""
ProductListStage — dump the merchant's product catalogue to a table.

Pages through ``products.list`` with the listing retry policy (a 500 there
is not retried) and writes one row per product with its id, offer id,
title and availability.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from benchmark_labeler.ingestion.merchant_client import MerchantCenterClient, list_all_products
from benchmark_labeler.models.meta import RunMetadata
from benchmark_labeler.models.rows import Table
from benchmark_labeler.pipeline.base import PipelineStage
from benchmark_labeler.reporting.export import write_table

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = ["id", "offerId", "title", "availability"]


def product_row(product: dict[str, Any]) -> list[Any]:
    """``products.list`` resource → table row; missing fields become ``""``."""
    return [product.get(col, "") for col in PRODUCT_COLUMNS]


class ProductListStage(PipelineStage):
    """List every product of the configured merchant account."""

    stage_name = "product_list"

    def __init__(self, config, client: MerchantCenterClient) -> None:
        super().__init__(config)
        self.client = client
        self.table: Optional[Table] = None
        self.written: Optional[Path] = None

    def _execute(self, run: RunMetadata, write: bool = True, **kwargs) -> int:
        cfg = self.config
        logger.info("Listing products for account %s", self.client.merchant_id)
        fetched = list_all_products(self.client, cfg.api.listing_retry, cfg.api.page_size)
        run.source_counts = {"products": len(fetched)}
        if fetched.stopped_early:
            logger.warning(
                "Product listing stopped early after %d pages; table is partial.",
                fetched.pages,
            )

        self.table = Table(
            name=cfg.output.products_table,
            header=list(PRODUCT_COLUMNS),
            rows=[product_row(p) for p in fetched.records],
            generated_at=run.started_at,
        )
        if write:
            self.written = write_table(
                self.table, Path(cfg.output.output_dir), cfg.output.timezone
            )
            run.tables_written = [self.table.name]
        return len(self.table.rows)
