"""
Output row and table models produced by the Reconciler and the Projector.

``DetailRow`` / ``SupplementalRow`` are the reconciled, typed rows.
``Table`` is the uniform tabular shape written to an output destination:
an ordered header plus ordered rows of the same length.  ``TableSet`` is
everything one run emits.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from benchmark_labeler.models.records import StockValue


@dataclass(frozen=True)
class DetailRow:
    """One labeled product in the benchmark detail table."""

    offer_id:        str
    title:           str
    brand:           str
    price:           float
    currency_code:   str
    country_code:    str
    benchmark_price: float
    relative_price:  float
    label:           str
    impressions:     int
    clicks:          int
    stock_quantity:  Optional[StockValue] = None   # set only when stock tracking is on

    def as_list(self, include_stock: bool) -> list[Any]:
        """Row values in detail-table column order."""
        values: list[Any] = [
            self.offer_id,
            self.title,
            self.brand,
            self.price,
            self.currency_code,
            self.country_code,
            self.benchmark_price,
            self.relative_price,
            self.label,
            self.impressions,
            self.clicks,
        ]
        if include_stock:
            values.append("" if self.stock_quantity is None else self.stock_quantity)
        return values


@dataclass(frozen=True)
class SupplementalRow:
    """One ``(offer id, label)`` entry of the supplemental feed."""

    offer_id: str
    label:    str

    def as_list(self) -> list[Any]:
        return [self.offer_id, self.label]


@dataclass
class Table:
    """An ordered header and rows, ready to be written to a destination.

    Attributes:
        name:         Destination name, e.g. ``"benchmark data"``.
        header:       Column names.
        rows:         Row values, each the same length as ``header``.
        generated_at: When the table was built (drives the last-updated stamp).
    """

    name:         str
    header:       list[str]
    rows:         list[list[Any]] = field(default_factory=list)
    generated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        width = len(self.header)
        for i, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Table '{self.name}' row {i} has {len(row)} values; "
                    f"header has {width} columns."
                )

    def as_matrix(self) -> list[list[Any]]:
        """Header followed by rows."""
        return [list(self.header), *self.rows]


@dataclass
class TableSet:
    """All tables produced by one run, keyed by destination name."""

    tables: dict[str, Table] = field(default_factory=dict)

    def add(self, table: Table) -> None:
        self.tables[table.name] = table

    def get(self, name: str) -> Optional[Table]:
        return self.tables.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.tables

    def __len__(self) -> int:
        return len(self.tables)
