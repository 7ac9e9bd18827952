"""
iOS identity rewriting.

iOS identifies an app by a flat bundle identifier. It appears in Info.plist and
once per build configuration in project.pbxproj, alongside the signing fields.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from ...core.exceptions import StructuralNotFoundError
from ...core.files import read_text, write_text
from ...core.logging import get_logger
from ...models.project import IosSigning
from .patterns import (
    PBX_BUNDLE_IDENTIFIER,
    PBX_CODE_SIGN_STYLE,
    PBX_DEPLOYMENT_TARGET,
    PBX_DEVELOPMENT_TEAM,
    PLIST_BUNDLE_DISPLAY_NAME,
    PLIST_BUNDLE_IDENTIFIER,
    PLIST_BUNDLE_NAME,
    PODFILE_PLATFORM,
    TextPattern,
)

logger = get_logger(__name__)

IOS_DIR = Path("ios")
INFO_PLIST_PATH = IOS_DIR / "Runner" / "Info.plist"
PBXPROJ_PATH = IOS_DIR / "Runner.xcodeproj" / "project.pbxproj"
PODFILE_PATH = IOS_DIR / "Podfile"
FLUTTER_XCCONFIG_DIR = IOS_DIR / "Flutter"
FLUTTER_XCCONFIGS = ("Debug.xcconfig", "Release.xcconfig")


class IosRewriteOutput(BaseModel):
    """Result of rewriting the iOS identity."""

    bundle_id: str
    signing_configured: bool = False
    changed_files: list[Path] = Field(default_factory=list)


def render_signing_xcconfig(signing: IosSigning) -> str:
    """Full content of the signing xcconfig; it is never merged."""
    return (
        f"CODE_SIGN_STYLE = {signing.style}\n"
        f"DEVELOPMENT_TEAM = {signing.team_id}\n"
        f"CODE_SIGN_IDENTITY = {signing.identity}\n"
    )


def include_directive(xcconfig: Path, signing_xcconfig: Path) -> str:
    """`#include` line that pulls the signing xcconfig into another xcconfig.

    Both paths are relative to the working copy.
    """
    relative = os.path.relpath(signing_xcconfig, xcconfig.parent)
    return f'#include "{Path(relative).as_posix()}"'


class IosIdentityRewriter:
    """Applies a new bundle identity and signing setup to the iOS half of a Flutter project."""

    def __init__(self, signing_xcconfig: Path) -> None:
        """Initialize the rewriter.

        Args:
            signing_xcconfig: Signing xcconfig location relative to the working copy
        """
        self.signing_xcconfig = signing_xcconfig

    async def rewrite(
        self,
        working_copy: Path,
        bundle_id: str,
        display_name: str | None = None,
        signing: IosSigning | None = None,
        deployment_target: str | None = None,
    ) -> IosRewriteOutput:
        """Rewrite Info.plist, project settings and optionally signing and Podfile.

        Raises:
            StructuralNotFoundError: If Info.plist or project.pbxproj is missing
        """
        output = IosRewriteOutput(bundle_id=bundle_id)

        plist_path = self._require(working_copy / INFO_PLIST_PATH)
        plist = await read_text(plist_path)
        plist = self._apply(plist, PLIST_BUNDLE_IDENTIFIER, bundle_id)
        if display_name is not None:
            plist = self._apply(plist, PLIST_BUNDLE_NAME, display_name)
            plist = self._apply(plist, PLIST_BUNDLE_DISPLAY_NAME, display_name)
        await write_text(plist_path, plist)
        output.changed_files.append(plist_path)

        pbxproj_path = self._require(working_copy / PBXPROJ_PATH)
        pbxproj = await read_text(pbxproj_path)
        pbxproj = self._apply(pbxproj, PBX_BUNDLE_IDENTIFIER, bundle_id)

        if signing is not None:
            xcconfig_path = working_copy / self.signing_xcconfig
            await write_text(xcconfig_path, render_signing_xcconfig(signing))
            output.changed_files.append(xcconfig_path)
            pbxproj, team_count = PBX_DEVELOPMENT_TEAM.substitute(pbxproj, signing.team_id)
            pbxproj = self._apply(pbxproj, PBX_CODE_SIGN_STYLE, signing.style)
            included = await self._include_signing_xcconfig(working_copy)
            output.changed_files.extend(included)
            output.signing_configured = bool(team_count or included)
            if output.signing_configured:
                logger.info(
                    "iOS signing configured",
                    team_id=signing.team_id,
                    xcconfig=str(xcconfig_path),
                    project_settings=team_count,
                    included_from=[str(path) for path in included],
                )
            else:
                logger.warning(
                    "Signing xcconfig written but not referenced by the Xcode project",
                    xcconfig=str(xcconfig_path),
                )
        else:
            logger.warning("No iOS signing parameters supplied, signing settings left unchanged")

        if deployment_target is not None:
            pbxproj = self._apply(pbxproj, PBX_DEPLOYMENT_TARGET, deployment_target)
            podfile = await self._rewrite_podfile(working_copy, deployment_target)
            if podfile is not None:
                output.changed_files.append(podfile)

        await write_text(pbxproj_path, pbxproj)
        output.changed_files.append(pbxproj_path)

        logger.info("iOS identity updated", bundle_id=bundle_id)
        return output

    def _require(self, path: Path) -> Path:
        if not path.is_file():
            raise StructuralNotFoundError(message="iOS project file not found", file_path=str(path))
        return path

    def _apply(self, text: str, pattern: TextPattern, value: str) -> str:
        updated, count = pattern.substitute(text, value)
        if count:
            logger.debug("Pattern applied", pattern=pattern.name, occurrences=count)
        else:
            logger.debug("Pattern not present, skipped", pattern=pattern.name)
        return updated

    async def _include_signing_xcconfig(self, working_copy: Path) -> list[Path]:
        """Add the signing `#include` to the Flutter Debug/Release xcconfigs.

        Returns:
            The xcconfigs that now include the signing settings
        """
        included: list[Path] = []
        for name in FLUTTER_XCCONFIGS:
            relative = FLUTTER_XCCONFIG_DIR / name
            path = working_copy / relative
            if not path.is_file():
                logger.debug("Flutter xcconfig not found", path=str(path))
                continue

            directive = include_directive(relative, self.signing_xcconfig)
            content = await read_text(path)
            if directive not in content.splitlines():
                newline = "\r\n" if "\r\n" in content else "\n"
                if content and not content.endswith(("\n", "\r")):
                    content += newline
                await write_text(path, f"{content}{directive}{newline}")
            included.append(path)
        return included

    async def _rewrite_podfile(self, working_copy: Path, deployment_target: str) -> Path | None:
        podfile_path = working_copy / PODFILE_PATH
        if not podfile_path.is_file():
            logger.warning("Podfile not found, minimum platform left unchanged", path=str(podfile_path))
            return None

        podfile, count = PODFILE_PLATFORM.substitute(await read_text(podfile_path), deployment_target)
        if not count:
            logger.warning("Podfile has no 'platform :ios' line", path=str(podfile_path))
            return None
        await write_text(podfile_path, podfile)
        return podfile_path
