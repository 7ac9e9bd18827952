"""Core infrastructure components for RebrandKit."""

from .config import Config, get_config
from .exceptions import (
    ArtifactNotFoundWarning,
    BuildToolFailedError,
    PipelineError,
    RebrandError,
    StructuralNotFoundError,
    ToolUnavailableError,
    UserCancelledError,
    ValidationError,
)
from .logging import get_logger, setup_logging
from .process import CommandRunner
from .types import StageName, StageResult, StageStatus

__all__ = [
    "Config",
    "get_config",
    "ArtifactNotFoundWarning",
    "BuildToolFailedError",
    "PipelineError",
    "RebrandError",
    "StructuralNotFoundError",
    "ToolUnavailableError",
    "UserCancelledError",
    "ValidationError",
    "get_logger",
    "setup_logging",
    "CommandRunner",
    "StageName",
    "StageResult",
    "StageStatus",
]
