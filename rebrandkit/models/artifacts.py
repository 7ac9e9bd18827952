"""Build output models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from .project import BuildMode, Platform


class ArtifactKind(str, Enum):
    """Kinds of distributable build outputs."""

    PACKAGE = "package"
    BUNDLE = "bundle"
    ARCHIVE = "archive"
    APP_IMAGE = "app-image"


class ArtifactSpec(BaseModel):
    """Where a toolchain leaves an output and what it is called once collected."""

    platform: Platform
    mode: BuildMode
    kind: ArtifactKind
    relative_path: Path = Field(description="Output path relative to the working copy")
    output_name: str = Field(description="File or folder name inside the output folder")


class BuildArtifact(BaseModel):
    """A build output copied into the output folder."""

    platform: Platform
    mode: BuildMode
    kind: ArtifactKind
    source_path: Path
    destination_path: Path
