"""
Artifact Collector.

Copies distributable build outputs from the working copy into a per-identity
output folder. The folder is recreated on every run so it never mixes outputs
of different builds.
"""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass, field
from pathlib import Path

from ...core.config import PathsConfig
from ...core.exceptions import ArtifactNotFoundWarning
from ...core.logging import get_logger
from ...models.artifacts import ArtifactKind, ArtifactSpec, BuildArtifact
from ...models.project import BuildMode, Platform

logger = get_logger(__name__)


def _spec(platform: Platform, mode: BuildMode, kind: ArtifactKind, relative_path: str) -> ArtifactSpec:
    path = Path(relative_path)
    return ArtifactSpec(platform=platform, mode=mode, kind=kind, relative_path=path, output_name=path.name)


ARTIFACT_SPECS: list[ArtifactSpec] = [
    _spec(Platform.ANDROID, BuildMode.RELEASE, ArtifactKind.PACKAGE, "build/app/outputs/apk/release/app-release.apk"),
    _spec(Platform.ANDROID, BuildMode.RELEASE, ArtifactKind.BUNDLE, "build/app/outputs/bundle/release/app-release.aab"),
    _spec(Platform.ANDROID, BuildMode.DEBUG, ArtifactKind.PACKAGE, "build/app/outputs/apk/debug/app-debug.apk"),
    _spec(Platform.IOS, BuildMode.RELEASE, ArtifactKind.ARCHIVE, "ios/Runner.xcarchive"),
    _spec(Platform.IOS, BuildMode.DEBUG, ArtifactKind.APP_IMAGE, "build/ios/iphonesimulator/Runner.app"),
]


def specs_for(mode: BuildMode, platforms: list[Platform]) -> list[ArtifactSpec]:
    """Expected artifacts for a mode, in platform order."""
    return [spec for platform in platforms for spec in ARTIFACT_SPECS if spec.platform == platform and spec.mode == mode]


@dataclass
class CollectionOutput:
    """Result of a collection pass."""

    output_dir: Path
    artifacts: list[BuildArtifact] = field(default_factory=list)
    missing: list[ArtifactNotFoundWarning] = field(default_factory=list)


def _copy(source: Path, destination: Path) -> None:
    if source.is_dir():
        shutil.copytree(source, destination, symlinks=True)
    else:
        shutil.copy2(source, destination)


class ArtifactCollector:
    """Gathers build outputs into `<output_root>/<folder_name>`."""

    def __init__(self, paths: PathsConfig) -> None:
        self.paths = paths

    def output_dir_for(self, folder_name: str) -> Path:
        return self.paths.output_root / folder_name

    async def collect(
        self,
        working_copy: Path,
        folder_name: str,
        mode: BuildMode,
        platforms: list[Platform],
    ) -> CollectionOutput:
        """Recreate the output folder and copy every expected artifact into it.

        A missing artifact is reported as an ArtifactNotFoundWarning and does
        not stop the remaining copies.

        Args:
            working_copy: Root of the built working copy
            folder_name: Output folder name derived from the bundle identifier
            mode: Mode the working copy was built in
            platforms: Enabled platforms

        Returns:
            CollectionOutput with collected and missing artifacts
        """
        output_dir = self.output_dir_for(folder_name)
        if output_dir.exists():
            logger.info("Clearing previous output folder", path=str(output_dir))
            await asyncio.to_thread(shutil.rmtree, output_dir)
        output_dir.mkdir(parents=True)

        result = CollectionOutput(output_dir=output_dir)
        for spec in specs_for(mode, platforms):
            source = working_copy / spec.relative_path
            if not source.exists():
                missing = ArtifactNotFoundWarning(
                    platform=spec.platform.value,
                    mode=spec.mode.value,
                    expected_path=source,
                )
                logger.warning("Artifact not found", platform=spec.platform.value, expected=str(source))
                result.missing.append(missing)
                continue

            destination = output_dir / spec.output_name
            await asyncio.to_thread(_copy, source, destination)
            result.artifacts.append(
                BuildArtifact(
                    platform=spec.platform,
                    mode=spec.mode,
                    kind=spec.kind,
                    source_path=source,
                    destination_path=destination,
                )
            )
            logger.info("Artifact collected", kind=spec.kind.value, destination=str(destination))

        logger.info(
            "Artifact collection finished",
            output_dir=str(output_dir),
            collected=len(result.artifacts),
            missing=len(result.missing),
        )
        return result
