"""
Output Projector — shape reconciled rows into the two output tables.

  benchmark detail table (always emitted)::

      id, title, brand, current_price, currency, country, benchmark_price,
      % current vs. benchmark, custom_label_<N>, impressions, clicks[, <stock attribute>]

  supplemental feed table (only when label export is activated)::

      id, custom_label_<N>

Rows keep the Reconciler's order; nothing is sorted or de-duplicated.
Both tables carry the same ``generated_at`` timestamp.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from benchmark_labeler.models.rows import DetailRow, SupplementalRow, Table, TableSet
from benchmark_labeler.utils.time_utils import utcnow

DETAIL_BASE_COLUMNS = [
    "id", "title", "brand", "current_price", "currency", "country",
    "benchmark_price", "% current vs. benchmark",
]
DETAIL_METRIC_COLUMNS = ["impressions", "clicks"]

DEFAULT_DETAIL_TABLE = "benchmark data"
DEFAULT_SUPPLEMENTAL_TABLE = "output - supplemental feed"


def detail_header(label_column: str, stock_enabled: bool, stock_column: str) -> list[str]:
    """Column names of the benchmark detail table."""
    header = [*DETAIL_BASE_COLUMNS, label_column, *DETAIL_METRIC_COLUMNS]
    if stock_enabled:
        header.append(stock_column)
    return header


def supplemental_header(label_column: str) -> list[str]:
    """Column names of the supplemental feed table."""
    return ["id", label_column]


def project(
    detail_rows: Sequence[DetailRow],
    supplemental_rows: Sequence[SupplementalRow],
    stock_enabled: bool,
    label_export_enabled: bool,
    label_column: str = "custom_label_0",
    stock_column: str = "stock_quantity",
    detail_table: str = DEFAULT_DETAIL_TABLE,
    supplemental_table: str = DEFAULT_SUPPLEMENTAL_TABLE,
    generated_at: Optional[datetime] = None,
) -> TableSet:
    """Build the output ``TableSet``.

    Args:
        detail_rows:          Reconciled detail rows.
        supplemental_rows:    Reconciled ``(offer id, label)`` rows.
        stock_enabled:        Append the stock column to the detail table.
        label_export_enabled: Emit the supplemental feed table.
        label_column:         Label column name, e.g. ``custom_label_2``.
        stock_column:         Stock column name (the stock attribute name).
        detail_table:         Destination name of the detail table.
        supplemental_table:   Destination name of the supplemental table.
        generated_at:         Timestamp for both tables (defaults to now, UTC).

    Returns:
        ``TableSet`` with one or two tables.
    """
    stamp = generated_at or utcnow()
    tables = TableSet()
    tables.add(
        Table(
            name=detail_table,
            header=detail_header(label_column, stock_enabled, stock_column),
            rows=[row.as_list(include_stock=stock_enabled) for row in detail_rows],
            generated_at=stamp,
        )
    )
    if label_export_enabled:
        tables.add(
            Table(
                name=supplemental_table,
                header=supplemental_header(label_column),
                rows=[row.as_list() for row in supplemental_rows],
                generated_at=stamp,
            )
        )
    return tables
