"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``BENCHMARK_LABELER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

Every client, pipeline stage and CLI command receives an ``AppConfig``
instance explicitly. Nothing reads configuration through module globals.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from benchmark_labeler.pricing.classifier import PriceZone

# ── Sub-config models ─────────────────────────────────────────────────────────


class MerchantConfig(BaseModel):
    """Which merchant account is read and how the report is filtered."""

    model_config = ConfigDict(frozen=True)

    merchant_id: str = ""
    country_filter: str = "US"
    currency_filter: str = "USD"

    @field_validator("country_filter", "currency_filter")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()


class LabelConfig(BaseModel):
    """Price-zone thresholds, label names and the export allow-list.

    Thresholds are relative prices (``price / benchmark - 1``).  The
    validators normalize operator input the way the settings sheet is
    usually filled in: a positive ``below_threshold`` is negated, and
    ``at_threshold`` may be given as ``"±5%"``.
    """

    model_config = ConfigDict(frozen=True)

    custom_label_number: int = 0
    activate_labels: bool = False

    below_threshold: float = -0.1
    at_threshold: float = 0.05
    above_threshold: float = 0.05

    below_name: str = "below_benchmark"
    at_name: str = "at_benchmark"
    above_name: str = "above_benchmark"

    export_labels: tuple[str, ...] = ("below_benchmark", "at_benchmark", "above_benchmark")

    @field_validator("custom_label_number")
    @classmethod
    def validate_label_number(cls, v: int) -> int:
        if not 0 <= v <= 4:
            raise ValueError(f"custom_label_number must be in 0..4, got {v}.")
        return v

    @field_validator("below_threshold")
    @classmethod
    def below_is_negative(cls, v: float) -> float:
        return -v if v > 0 else v

    @field_validator("at_threshold", mode="before")
    @classmethod
    def parse_at_threshold(cls, v: Any) -> float:
        if isinstance(v, str):
            cleaned = v.replace("±", "").replace("%", "").strip()
            try:
                v = float(cleaned) / 100
            except ValueError:
                raise ValueError(f"at_threshold must be a number or '±N%', got '{v}'.")
        return abs(float(v))

    @field_validator("above_threshold")
    @classmethod
    def above_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"above_threshold must be >= 0, got {v}.")
        return v

    @property
    def label_column(self) -> str:
        """Feed column the label is written to, e.g. ``custom_label_0``."""
        return f"custom_label_{self.custom_label_number}"

    def name_for(self, zone: "PriceZone") -> str:
        """Return the configured label name for ``zone`` (``""`` for NONE)."""
        from benchmark_labeler.pricing.classifier import PriceZone

        return {
            PriceZone.BELOW: self.below_name,
            PriceZone.AT: self.at_name,
            PriceZone.ABOVE: self.above_name,
        }.get(zone, "")


class StockConfig(BaseModel):
    """Optional stock-quantity gate read from a product custom attribute."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    attribute: str = "stock_quantity"
    threshold: float = 0


class RetryPolicy(BaseModel):
    """Retry behaviour for one paginated endpoint.

    Attributes:
        max_retries:        Retries allowed per fetch (0 = no retries).
        retryable_codes:    Reported error codes that are retried on the
                            same page token.
        on_permanent_error: ``"stop"`` returns what was accumulated so far,
                            ``"raise"`` raises ``PermanentApiError``.
    """

    model_config = ConfigDict(frozen=True)

    max_retries: int = 0
    retryable_codes: frozenset[int] = frozenset({500})
    on_permanent_error: Literal["stop", "raise"] = "stop"

    @field_validator("max_retries")
    @classmethod
    def non_negative_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_retries must be >= 0, got {v}.")
        return v


class ApiConfig(BaseModel):
    """Endpoint locations, page sizes and per-endpoint retry policies."""

    model_config = ConfigDict(frozen=True)

    merchant_base_url: str = "https://shoppingcontent.googleapis.com/content/v2.1"
    ads_base_url: str = "https://googleads.googleapis.com"
    ads_api_version: str = "v14"
    page_size: int = 1000
    batch_size: int = 1000
    ads_page_size: int = 10000
    timeout_seconds: float = 120.0

    report_retry: RetryPolicy = RetryPolicy(max_retries=3)
    listing_retry: RetryPolicy = RetryPolicy(max_retries=0)
    ads_retry: RetryPolicy = RetryPolicy(
        max_retries=0, retryable_codes=frozenset(), on_permanent_error="raise"
    )

    @field_validator("page_size", "batch_size", "ads_page_size")
    @classmethod
    def positive_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Page and batch sizes must be >= 1, got {v}.")
        return v


class AdsConfig(BaseModel):
    """Ads account used by the per-label performance report."""

    model_config = ConfigDict(frozen=True)

    manager_customer_id: str = ""
    customer_id: str = ""
    lookback_days: int = 90

    @field_validator("manager_customer_id", "customer_id")
    @classmethod
    def strip_dashes(cls, v: str) -> str:
        return str(v).replace("-", "").strip()


class OutputConfig(BaseModel):
    """Where the output tables and their last-updated stamps are written."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/outputs"
    benchmark_table: str = "benchmark data"
    supplemental_table: str = "output - supplemental feed"
    ads_table: str = "ads data"
    products_table: str = "products"
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"output.timezone must be an IANA zone name, got '{v}'.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/benchmark_labeler.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed once by ``load_config()`` and passed to every component.
    """

    model_config = ConfigDict(frozen=True)

    merchant: MerchantConfig = MerchantConfig()
    labels: LabelConfig = LabelConfig()
    stock: StockConfig = StockConfig()
    api: ApiConfig = ApiConfig()
    ads: AdsConfig = AdsConfig()
    output: OutputConfig = OutputConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply BENCHMARK_LABELER_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply BENCHMARK_LABELER_* env vars to the raw config dict.

    Supported overrides:
      BENCHMARK_LABELER_MERCHANT_ID → raw["merchant"]["merchant_id"]
      BENCHMARK_LABELER_COUNTRY     → raw["merchant"]["country_filter"]
      BENCHMARK_LABELER_CURRENCY    → raw["merchant"]["currency_filter"]
      BENCHMARK_LABELER_OUTPUT_DIR  → raw["output"]["output_dir"]
      BENCHMARK_LABELER_LOG_LEVEL   → raw["logging"]["level"]
      BENCHMARK_LABELER_DEBUG       → raw["debug"]
    """
    if merchant_id := os.environ.get("BENCHMARK_LABELER_MERCHANT_ID"):
        raw.setdefault("merchant", {})["merchant_id"] = merchant_id

    if country := os.environ.get("BENCHMARK_LABELER_COUNTRY"):
        raw.setdefault("merchant", {})["country_filter"] = country

    if currency := os.environ.get("BENCHMARK_LABELER_CURRENCY"):
        raw.setdefault("merchant", {})["currency_filter"] = currency

    if output_dir := os.environ.get("BENCHMARK_LABELER_OUTPUT_DIR"):
        raw.setdefault("output", {})["output_dir"] = output_dir

    if log_level := os.environ.get("BENCHMARK_LABELER_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("BENCHMARK_LABELER_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_api_config(raw: dict[str, Any]) -> ApiConfig:
    """Build ``ApiConfig``, turning ``[api.*_retry]`` tables into ``RetryPolicy``."""
    api = dict(raw)
    for key in ("report_retry", "listing_retry", "ads_retry"):
        if key in api:
            api[key] = RetryPolicy(**api[key])
    return ApiConfig(**api)


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        merchant=MerchantConfig(**raw.get("merchant", {})),
        labels=LabelConfig(**raw.get("labels", {})),
        stock=StockConfig(**raw.get("stock", {})),
        api=_build_api_config(raw.get("api", {})),
        ads=AdsConfig(**raw.get("ads", {})),
        output=OutputConfig(**raw.get("output", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
