"""
Report query builders.

Values interpolated into a query are quoted with ``_quote()``, which escapes
embedded single quotes and backslashes.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

BENCHMARK_FIELDS = (
    "product_view.id",
    "product_view.offer_id",
    "product_view.title",
    "product_view.brand",
    "product_view.price_micros",
    "product_view.currency_code",
    "price_competitiveness.country_code",
    "price_competitiveness.benchmark_price_micros",
    "price_competitiveness.benchmark_price_currency_code",
)

ADS_FIELDS = (
    "segments.date",
    "segments.product_custom_attribute1",
    "metrics.clicks",
    "metrics.impressions",
    "metrics.cost_micros",
    "metrics.average_cpc",
    "metrics.ctr",
    "metrics.conversions",
    "metrics.conversions_value",
    "metrics.all_conversions",
    "metrics.all_conversions_value",
    "metrics.conversions_from_interactions_rate",
)


def _quote(value: str) -> str:
    escaped = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def benchmark_query(country: str, currency: str) -> str:
    """Price competitiveness rows for one country, priced in one currency."""
    return (
        f"SELECT {', '.join(BENCHMARK_FIELDS)} "
        "FROM PriceCompetitivenessProductView "
        f"WHERE price_competitiveness.country_code = {_quote(country)} "
        f"AND product_view.currency_code = {_quote(currency)} "
        f"AND price_competitiveness.benchmark_price_currency_code = {_quote(currency)}"
    )


def offer_id_from_product_id(product_id: str) -> str:
    """Return the offer id part of ``channel:lang:country:offerId``.

    Offer ids may themselves contain ``:``, so everything after the third
    separator is kept.  Ids without three separators are returned as-is.
    """
    parts = product_id.split(":", 3)
    return parts[3] if len(parts) == 4 else product_id


def performance_query(offer_ids: Iterable[str], country: str) -> str:
    """Last-30-day impressions/clicks for the given offers in one country."""
    unique = list(dict.fromkeys(offer_ids))
    id_list = ",".join(_quote(offer_id) for offer_id in unique)
    return (
        "SELECT segments.offer_id, metrics.impressions, metrics.clicks "
        "FROM MerchantPerformanceView "
        "WHERE segments.date DURING LAST_30_DAYS "
        "AND metrics.impressions > 0 "
        f"AND segments.offer_id IN ({id_list}) "
        f"AND segments.customer_country_code = {_quote(country)}"
    )


def ads_performance_window(today: date, lookback_days: int) -> tuple[date, date]:
    """Return ``(first_day, last_day)``: the window ending yesterday.

    ``first_day`` is ``lookback_days`` before ``last_day`` and both ends are
    inclusive, so the default 90-day lookback covers 91 dates.
    """
    last_day = today - timedelta(days=1)
    first_day = last_day - timedelta(days=lookback_days)
    return first_day, last_day


def ads_performance_query(first_day: date, last_day: date) -> str:
    """Daily shopping metrics per custom label 1 between two dates (inclusive)."""
    return (
        f"SELECT {', '.join(ADS_FIELDS)} "
        "FROM shopping_performance_view "
        f"WHERE segments.date >= {_quote(first_day.isoformat())} "
        f"AND segments.date <= {_quote(last_day.isoformat())} "
        "AND segments.product_custom_attribute1 IS NOT NULL"
    )
