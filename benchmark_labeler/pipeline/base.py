"""
Stage contract shared by the labeling run, the ads report and the product
listing.

A stage is built with the ``AppConfig`` and an API client, and is run once:

    stage = BenchmarkLabelStage(config, client)
    run = stage.run(write=False)      # → RunMetadata
    stage.last_run is run             # True

``run()`` owns the ``RunMetadata`` lifecycle; ``_execute()`` only does the
work, records what it fetched on the run (``run.source_counts`` etc.) and
returns the number of rows it emitted.  A failure is recorded on the run
and re-raised; a stage never writes partial output after an exception.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar, Optional
from uuid import uuid4

from benchmark_labeler.config import AppConfig
from benchmark_labeler.models.meta import RunMetadata
from benchmark_labeler.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Base class for the runnable stages.

    Subclasses set ``stage_name`` and implement ``_execute(run, **kwargs)``.

    Attributes:
        config:   Configuration for every run of this stage.
        last_run: Record of the most recent ``run()``, success or failure.
    """

    stage_name: ClassVar[str]

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.last_run: Optional[RunMetadata] = None

    def _start_run(self) -> RunMetadata:
        return RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.model_dump(mode="json"),
            started_at=utcnow(),
        )

    def run(self, **kwargs) -> RunMetadata:
        """Execute the stage once.

        Args:
            **kwargs: Passed through to ``_execute()`` (``write``, ``today``...).

        Returns:
            The finished ``RunMetadata`` (``status="success"``).

        Raises:
            Exception: Whatever ``_execute()`` raised, after the run record
                has been marked ``failed``.
        """
        run = self.last_run = self._start_run()
        logger.info("[%s] run %s started", self.stage_name, run.run_slug)

        try:
            rows = self._execute(run=run, **kwargs)
        except Exception as exc:
            run.mark_failed(exc)
            logger.error(
                "[%s] run %s FAILED after %.1fs: %s",
                self.stage_name, run.run_slug, run.duration_seconds, run.error_message,
            )
            raise

        run.mark_success(rows)
        logger.info(
            "[%s] run %s finished in %.1fs | rows=%d | fetched=%s | tables=%s",
            self.stage_name, run.run_slug, run.duration_seconds, rows,
            run.source_counts, run.tables_written or "-",
        )
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Do the stage's work and return the number of rows emitted."""
