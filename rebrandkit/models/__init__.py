"""Data models for RebrandKit."""

from .artifacts import ArtifactKind, ArtifactSpec, BuildArtifact
from .project import (
    BuildMode,
    DistinguishedName,
    IosSigning,
    Platform,
    ProjectIdentity,
    RebrandRequest,
    SigningCredentials,
    convert_to_folder_name,
)

__all__ = [
    "ArtifactKind",
    "ArtifactSpec",
    "BuildArtifact",
    "BuildMode",
    "DistinguishedName",
    "IosSigning",
    "Platform",
    "ProjectIdentity",
    "RebrandRequest",
    "SigningCredentials",
    "convert_to_folder_name",
]
