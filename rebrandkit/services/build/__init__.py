"""Build orchestration service."""

from .service import BuildCommand, BuildOrchestrator, BuildOutput

__all__ = ["BuildCommand", "BuildOrchestrator", "BuildOutput"]
