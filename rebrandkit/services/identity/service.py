"""
Identity Rewrite Service.

Applies a new application identity to a working copy: per-platform identifiers
and labels, signing settings, version stamping and runtime configuration.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from ...core.config import PathsConfig
from ...core.logging import get_logger
from ...models.project import Platform, RebrandRequest
from .android import AndroidIdentityRewriter, AndroidRewriteOutput
from .descriptors import RuntimeConfigRewriter, VersionFormat, VersionStamper
from .ios import IosIdentityRewriter, IosRewriteOutput

logger = get_logger(__name__)


class IdentityRewriteOutput(BaseModel):
    """Output from the identity rewrite."""

    android: AndroidRewriteOutput | None = None
    ios: IosRewriteOutput | None = None
    version: str | None = Field(default=None, description="Version written to pubspec.yaml")
    runtime_settings: list[str] = Field(default_factory=list)

    @property
    def changed_files(self) -> list[Path]:
        files: list[Path] = []
        for part in (self.android, self.ios):
            if part is not None:
                files.extend(part.changed_files)
        return files


def version_format_for(platforms: set[Platform]) -> VersionFormat:
    """Pick the pubspec version format; Android's wins when both platforms build."""
    return VersionFormat.NAME_AND_CODE if Platform.ANDROID in platforms else VersionFormat.NAME_ONLY


class IdentityRewriteService:
    """Service for rebranding a working copy's identity."""

    def __init__(self, paths: PathsConfig) -> None:
        self.android = AndroidIdentityRewriter()
        self.ios = IosIdentityRewriter(paths.ios_signing_xcconfig)
        self.versions = VersionStamper()
        self.runtime_config = RuntimeConfigRewriter()

    async def rewrite(self, working_copy: Path, request: RebrandRequest) -> IdentityRewriteOutput:
        """Rewrite every identity token for the enabled platforms.

        Args:
            working_copy: Root of the working copy
            request: The rebrand request

        Returns:
            IdentityRewriteOutput summarising what changed
        """
        identity = request.identity
        output = IdentityRewriteOutput()

        if Platform.ANDROID in request.platforms:
            output.android = await self.android.rewrite(
                working_copy, identity.bundle_id, identity.display_name
            )

        if Platform.IOS in request.platforms:
            output.ios = await self.ios.rewrite(
                working_copy,
                identity.bundle_id,
                identity.display_name,
                signing=request.ios_signing,
                deployment_target=request.ios_deployment_target,
            )

        if request.is_release and identity.version_name:
            output.version = await self.versions.stamp(
                working_copy,
                identity.version_name,
                identity.version_code,
                version_format_for(request.platforms),
            )
        elif request.is_release:
            logger.info("No version name supplied, pubspec version left unchanged")

        output.runtime_settings = await self.runtime_config.rewrite(working_copy, identity)
        return output
