"""
Benchmark labeler — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Check credentials for the APIs the command calls.
  4. Run the pipeline stage.
  5. Report result to stdout.

Install and run::

    pip install -e .
    benchmark-labeler --help
    benchmark-labeler validate-config
    benchmark-labeler run --dry-run
    benchmark-labeler run
    benchmark-labeler list-products
    benchmark-labeler ads-report
    benchmark-labeler count-ads-rows
"""

from __future__ import annotations

import json
import os
from typing import Optional

import typer

app = typer.Typer(
    name="benchmark-labeler",
    help="Label Merchant Center products by price vs. benchmark.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pathlib import Path

    from benchmark_labeler.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from benchmark_labeler.utils.logging import configure_logging
    configure_logging(config.logging)


def _require_env(*names: str) -> str:
    """Return the first non-empty env var of ``names`` or exit with an error."""
    for name in names:
        if value := os.environ.get(name):
            return value
    typer.echo(f"[ERROR] {names[0]} is not set (add it to .env).", err=True)
    raise typer.Exit(code=1)


def _require_setting(value: str, name: str) -> str:
    if not value:
        typer.echo(f"[ERROR] {name} is not set in config.", err=True)
        raise typer.Exit(code=1)
    return value


def _merchant_client(config):
    from benchmark_labeler.ingestion.merchant_client import MerchantCenterClient

    _require_setting(config.merchant.merchant_id, "merchant.merchant_id")
    token = _require_env("MERCHANT_ACCESS_TOKEN")
    return MerchantCenterClient(config, access_token=token)


def _ads_client(config):
    from benchmark_labeler.ingestion.ads_client import GoogleAdsClient

    _require_setting(config.ads.customer_id, "ads.customer_id")
    developer_token = _require_env("ADS_DEVELOPER_TOKEN")
    access_token = _require_env("ADS_ACCESS_TOKEN", "MERCHANT_ACCESS_TOKEN")
    return GoogleAdsClient(
        config, developer_token=developer_token, access_token=access_token
    )


def _fail(stage_label: str, exc: Exception) -> None:
    typer.echo(f"[ERROR] {stage_label} failed: {exc}", err=True)
    raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    labels = config.labels

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Merchant id:      {config.merchant.merchant_id or '(not set)'}")
    typer.echo(f"  Country/currency: {config.merchant.country_filter}/{config.merchant.currency_filter}")
    typer.echo(f"  Label column:     {labels.label_column} (export {'on' if labels.activate_labels else 'off'})")
    typer.echo(
        f"  Thresholds:       below<{labels.below_threshold:+.4f} | "
        f"at ±{labels.at_threshold:.4f} | above>{labels.above_threshold:+.4f}"
    )
    typer.echo(f"  Exported labels:  {', '.join(labels.export_labels) or '(none)'}")
    typer.echo(
        f"  Stock gate:       "
        f"{f'{config.stock.attribute} >= {config.stock.threshold:g}' if config.stock.enabled else 'off'}"
    )
    typer.echo(f"  Output dir:       {config.output.output_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("run")
def run_labels(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print what would run without calling any API.",
    ),
    no_write: bool = typer.Option(
        False,
        "--no-write",
        help="Fetch and label, print the tables, but leave the output files untouched.",
    ),
    preview: int = typer.Option(
        10,
        "--preview",
        help="Rows of each table to print.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Fetch benchmarks, label products and write the output tables.

    \b
    Steps:
      1. Price benchmark report (reports.search, 3 retries on 500).
      2. Last-30-day impressions/clicks for the benchmarked offers.
      3. Availability and stock for each product (products.custombatch).
      4. Classify below / at / above benchmark, filter, write tables.

    \b
    Credential setup (.env, gitignored):
      MERCHANT_ACCESS_TOKEN=...
    """
    from benchmark_labeler.pipeline.benchmark import BenchmarkLabelStage
    from benchmark_labeler.reporting.formatters import (
        format_label_counts,
        format_skip_summary,
        format_table_preview,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    typer.echo(
        f"run | merchant={config.merchant.merchant_id or '(not set)'} | "
        f"{config.merchant.country_filter}/{config.merchant.currency_filter} | "
        f"output={config.output.output_dir}"
    )

    if dry_run:
        typer.echo("[DRY RUN] Would run:")
        typer.echo("  reports.search      → price benchmark rows")
        typer.echo("  reports.search      → last-30-day performance per offer")
        typer.echo(f"  products.custombatch → availability (batches of {config.api.batch_size})")
        tables = [config.output.benchmark_table]
        if config.labels.activate_labels:
            tables.append(config.output.supplemental_table)
        typer.echo(f"  write tables        → {', '.join(tables)}")
        return

    with _merchant_client(config) as client:
        stage = BenchmarkLabelStage(config=config, client=client)
        try:
            run = stage.run(write=not no_write)
        except Exception as exc:
            _fail("BenchmarkLabelStage", exc)

    result = stage.result
    typer.echo(
        f"  status={run.status} | considered={result.input_count} | "
        f"labeled={run.rows_processed}"
    )
    typer.echo("")
    typer.echo("Labels:")
    typer.echo(format_label_counts([row.label for row in result.detail_rows]))
    typer.echo("Skipped:")
    typer.echo(format_skip_summary(dict(result.skipped)))
    for table in stage.tables.tables.values():
        typer.echo(format_table_preview(table, limit=preview))

    typer.echo("")
    if no_write:
        typer.echo("[OK] Labeling complete (nothing written).")
    else:
        for path in stage.written:
            typer.echo(f"  wrote {path}")
        typer.echo("[OK] Labeling complete.")


@app.command("list-products")
def list_products(
    preview: int = typer.Option(
        10,
        "--preview",
        help="Rows to print.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """List every product in the account (id, offerId, title, availability)."""
    from benchmark_labeler.pipeline.product_list import ProductListStage
    from benchmark_labeler.reporting.formatters import format_table_preview

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _merchant_client(config) as client:
        stage = ProductListStage(config=config, client=client)
        try:
            run = stage.run()
        except Exception as exc:
            _fail("ProductListStage", exc)

    typer.echo(f"  status={run.status} | products={run.rows_processed}")
    typer.echo(format_table_preview(stage.table, limit=preview))
    typer.echo("")
    typer.echo(f"[OK] Wrote {stage.written}")


@app.command("ads-report")
def ads_report(
    preview: int = typer.Option(
        10,
        "--preview",
        help="Rows to print.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Write daily ads performance per custom label for the lookback window.

    \b
    Credential setup (.env, gitignored):
      ADS_DEVELOPER_TOKEN=...
      ADS_ACCESS_TOKEN=...    (falls back to MERCHANT_ACCESS_TOKEN)
    """
    from benchmark_labeler.pipeline.ads_report import AdsReportStage
    from benchmark_labeler.reporting.formatters import format_table_preview

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _ads_client(config) as client:
        stage = AdsReportStage(config=config, client=client)
        try:
            run = stage.run()
        except Exception as exc:
            _fail("AdsReportStage", exc)

    typer.echo(f"  status={run.status} | rows={run.rows_processed}")
    typer.echo(format_table_preview(stage.table, limit=preview))
    typer.echo("")
    typer.echo(f"[OK] Wrote {stage.written}")


@app.command("count-ads-rows")
def count_ads_rows(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print how many rows the ads report query would return (first page only)."""
    from benchmark_labeler.pipeline.queries import (
        ads_performance_query,
        ads_performance_window,
    )
    from benchmark_labeler.utils.time_utils import today_in

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    first_day, last_day = ads_performance_window(
        today_in(config.output.timezone), config.ads.lookback_days
    )
    query = ads_performance_query(first_day, last_day)

    with _ads_client(config) as client:
        try:
            fetched = client.execute_search(query, config.ads.customer_id, count_only=True)
        except Exception as exc:
            _fail("count-ads-rows", exc)

    total = fetched.total_count if fetched.total_count is not None else len(fetched)
    typer.echo(f"{first_day} → {last_day}: {total} rows")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
