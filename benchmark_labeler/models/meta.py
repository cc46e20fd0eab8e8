"""
Run metadata: the audit record of one stage execution.

A labeling run touches three feeds and writes up to two tables; the record
keeps enough to answer "what did this run see and what did it write":

  ``source_counts``  rows fetched per feed (``benchmarks``, ``stats``, ...)
  ``skipped``        Reconciler exclusions per reason
  ``tables_written`` destination names replaced by this run
  ``config_snapshot`` the ``AppConfig`` (thresholds, allow-list, filters)

The record is the one mutable model in the package.  Stages fill it in
through ``mark_success()`` / ``mark_failed()`` rather than by assigning
``status`` directly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from benchmark_labeler.utils.time_utils import utcnow

StageName = Literal["benchmark_labels", "ads_report", "product_list"]
RunStatus = Literal["started", "success", "failed"]


class RunMetadata(BaseModel):
    """Audit record for one ``PipelineStage.run()``.

    Attributes:
        run_slug: UUID4 string identifying the run.
        pipeline_stage: Stage that produced the record.
        status: ``started`` until the stage finishes.
        config_snapshot: ``AppConfig.model_dump(mode="json")`` at start.
        rows_processed: Rows emitted to the stage's main table.
        source_counts: Rows fetched per input feed.
        skipped: Records excluded per reason (labeling runs only).
        tables_written: Tables replaced on disk by this run.
        error_message: Failure description when ``status == "failed"``.
    """

    model_config = ConfigDict(frozen=False, validate_assignment=True)

    run_slug: str
    pipeline_stage: StageName
    status: RunStatus = "started"
    config_snapshot: dict[str, Any]
    rows_processed: int = 0
    source_counts: dict[str, int] = Field(default_factory=dict)
    skipped: dict[str, int] = Field(default_factory=dict)
    tables_written: list[str] = Field(default_factory=list)
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def mark_success(self, rows: int) -> None:
        self.rows_processed = rows
        self.status = "success"
        self.finished_at = utcnow()

    def mark_failed(self, exc: BaseException) -> None:
        self.error_message = f"{type(exc).__name__}: {exc}"
        self.status = "failed"
        self.finished_at = utcnow()
