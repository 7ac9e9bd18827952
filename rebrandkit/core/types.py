"""
Core type definitions for RebrandKit.

Stage bookkeeping shared by the pipeline and its reporting surfaces.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StageStatus(str, Enum):
    """Status of a pipeline stage."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class StageName(str, Enum):
    """Pipeline stages in execution order."""

    MATERIALIZE = "materialize"
    REWRITE_IDENTITY = "rewrite_identity"
    UPDATE_ASSETS = "update_assets"
    PREPARE_CREDENTIALS = "prepare_credentials"
    BUILD = "build"
    COLLECT_ARTIFACTS = "collect_artifacts"


class StageResult(BaseModel):
    """Result of a pipeline stage execution."""

    stage_name: StageName = Field(description="Name of the pipeline stage")
    status: StageStatus = Field(default=StageStatus.RUNNING, description="Execution status")
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = Field(default=None)
    duration_seconds: float = Field(default=0.0)
    paths: list[Path] = Field(default_factory=list, description="Files or folders produced")
    error_message: str | None = Field(default=None)
    warnings: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)

    def _finish(self, status: StageStatus) -> None:
        self.status = status
        self.completed_at = utcnow()
        self.duration_seconds = (self.completed_at - self.started_at).total_seconds()

    def mark_completed(self, paths: list[Path] | None = None, warnings: list[str] | None = None) -> None:
        """Mark stage as successfully completed."""
        self.paths = paths or []
        self.warnings = warnings or []
        self._finish(StageStatus.COMPLETED)

    def mark_skipped(self, reason: str) -> None:
        """Mark stage as skipped."""
        self.metadata["skip_reason"] = reason
        self._finish(StageStatus.SKIPPED)

    def mark_failed(self, error: str) -> None:
        """Mark stage as failed."""
        self.error_message = error
        self._finish(StageStatus.FAILED)
