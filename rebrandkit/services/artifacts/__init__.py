"""Artifact collection service."""

from .service import ARTIFACT_SPECS, ArtifactCollector, CollectionOutput, specs_for

__all__ = ["ARTIFACT_SPECS", "ArtifactCollector", "CollectionOutput", "specs_for"]
