"""Services package for RebrandKit."""

from .materializer import MaterializerService
from .identity import IdentityRewriteService
from .assets import AssetService
from .credentials import CredentialStore
from .build import BuildOrchestrator
from .artifacts import ArtifactCollector

__all__ = [
    "MaterializerService",
    "IdentityRewriteService",
    "AssetService",
    "CredentialStore",
    "BuildOrchestrator",
    "ArtifactCollector",
]
