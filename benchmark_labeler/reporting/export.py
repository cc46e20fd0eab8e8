"""
Output writers — one CSV file per table plus a last-updated stamp file.

Layout under ``config.output.output_dir``::

    benchmark_data.csv
    output_-_supplemental_feed.csv
    updated_at.json        {"benchmark data": "2026-02-24 15:00:00", ...}

Each table file is fully replaced on every write (written to a temporary
sibling, then renamed over the old file), so a reader never sees a
half-written or appended-to table.  A set of tables is staged in full
before the first rename, and the stamps are only updated after every file
has been replaced.
"""

from __future__ import annotations

import csv
import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from benchmark_labeler.models.rows import Table, TableSet
from benchmark_labeler.utils.time_utils import format_updated_at, utcnow

logger = logging.getLogger(__name__)

UPDATED_AT_FILE = "updated_at.json"


def table_filename(name: str) -> str:
    """File name for a table: ``"benchmark data"`` → ``"benchmark_data.csv"``."""
    slug = re.sub(r"[^A-Za-z0-9._-]+", "_", name.strip()).strip("_") or "table"
    return f"{slug}.csv"


def export_to_csv(rows: list[list[Any]], path: Path) -> Path:
    """Replace ``path`` with ``rows`` written as UTF-8 CSV.

    Args:
        rows: Row value lists; the first is normally the header.
        path: Destination file path (parent dirs created if missing).

    Returns:
        ``path`` as written.
    """
    os.replace(_stage_csv(rows, path), path)
    return path


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed JSON file.

    Returns:
        ``path`` as written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def read_updated_at(output_dir: Path) -> dict[str, str]:
    """Return the table → last-updated map, or ``{}`` if none was written yet."""
    path = Path(output_dir) / UPDATED_AT_FILE
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))

def _stage_csv(rows: list[list[Any]], path: Path) -> Path:
    """Write ``rows`` to a temporary sibling of ``path`` and return it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    with tmp_path.open("w", newline="", encoding="utf-8") as f:
        csv.writer(f).writerows(rows)
    return tmp_path


def write_tables(tables: TableSet, output_dir: Path, tz_name: str = "UTC") -> list[Path]:
    """Replace every table in ``tables`` together, then record their stamps.

    Stamps are rendered and every table is staged to a temporary file before
    any existing file is touched.  A bad ``tz_name`` or a failed write leaves
    the previous output in place.

    Returns:
        Paths of the written CSV files, in table order.
    """
    output_dir = Path(output_dir)
    batch = list(tables.tables.values())

    stamps = read_updated_at(output_dir)
    for table in batch:
        stamps[table.name] = format_updated_at(table.generated_at or utcnow(), tz_name)

    staged: list[tuple[Path, Path]] = []
    try:
        for table in batch:
            path = output_dir / table_filename(table.name)
            staged.append((_stage_csv(table.as_matrix(), path), path))
    except OSError:
        for tmp_path, _ in staged:
            tmp_path.unlink(missing_ok=True)
        raise

    for tmp_path, path in staged:
        os.replace(tmp_path, path)
    export_to_json(stamps, output_dir / UPDATED_AT_FILE)

    for table, (_, path) in zip(batch, staged):
        logger.info("Wrote table '%s' (%d rows) to %s", table.name, len(table.rows), path)
    return [path for _, path in staged]


def write_table(table: Table, output_dir: Path, tz_name: str = "UTC") -> Path:
    """Clear and rewrite one table, then record its last-updated stamp."""
    single = TableSet()
    single.add(table)
    return write_tables(single, output_dir, tz_name)[0]
