"""Orchestration module for RebrandKit."""

from .pipeline import PipelineResult, RebrandPipeline, rebrand_flow, run_pipeline

__all__ = [
    "PipelineResult",
    "RebrandPipeline",
    "rebrand_flow",
    "run_pipeline",
]
