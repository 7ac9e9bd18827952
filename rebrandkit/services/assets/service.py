"""
Asset Update Service.

Regenerates launcher icons for every density bucket from one square source image.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from PIL import Image
from pydantic import BaseModel, Field

from ...core.config import AssetsConfig
from ...core.exceptions import AssetGenerationError
from ...core.logging import get_logger
from ...models.project import Platform

logger = get_logger(__name__)

DEFAULT_ICON_NAME = "icon.png"

ANDROID_RES_DIR = Path("android") / "app" / "src" / "main" / "res"
IOS_APPICONSET_DIR = Path("ios") / "Runner" / "Assets.xcassets" / "AppIcon.appiconset"

ANDROID_DENSITIES = [
    ("mdpi", 48),
    ("hdpi", 72),
    ("xhdpi", 96),
    ("xxhdpi", 144),
    ("xxxhdpi", 192),
]

IOS_ICON_SIZES = [
    (20, [2, 3]),  # Notification
    (29, [1, 2, 3]),  # Settings and Spotlight
    (40, [2, 3]),  # Spotlight
    (60, [2, 3]),  # App
    (1024, [1]),  # App Store
]


def _android_table() -> list[tuple[Path, int]]:
    return [(ANDROID_RES_DIR / f"mipmap-{bucket}" / "ic_launcher.png", size) for bucket, size in ANDROID_DENSITIES]


def _ios_table() -> list[tuple[Path, int]]:
    return [
        (IOS_APPICONSET_DIR / f"Icon-App-{size}x{size}@{scale}x.png", size * scale)
        for size, scales in IOS_ICON_SIZES
        for scale in scales
    ]


ICON_TABLES: dict[Platform, list[tuple[Path, int]]] = {
    Platform.ANDROID: _android_table(),
    Platform.IOS: _ios_table(),
}


def resize_icon(source: Path, dimension: int, destination: Path) -> Path:
    """Write a square PNG of the given dimension, replacing any existing file."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    with Image.open(source) as image:
        resized = image.convert("RGBA").resize((dimension, dimension), Image.Resampling.LANCZOS)
        resized.save(destination, format="PNG")
    return destination


class AssetUpdateOutput(BaseModel):
    """Output from the icon update."""

    source: Path | None = Field(default=None, description="Icon used, None when skipped")
    written: list[Path] = Field(default_factory=list)


class AssetService:
    """Service for regenerating platform launcher icons."""

    def __init__(self, config: AssetsConfig) -> None:
        self.config = config

    def source_for(self, working_copy: Path) -> Path:
        return self.config.icon_source or working_copy / DEFAULT_ICON_NAME

    async def update_icons(self, working_copy: Path, platforms: set[Platform]) -> AssetUpdateOutput:
        """Resize the source icon into every icon slot of the enabled platforms.

        Resizes run concurrently; all of them run to completion before any
        failure is reported.

        Raises:
            AssetGenerationError: Listing every resize that failed
        """
        source = self.source_for(working_copy)
        if not source.is_file():
            logger.info("No custom icon found, keeping bundled icons", expected=str(source))
            return AssetUpdateOutput()

        table = [
            (working_copy / relative_path, dimension)
            for platform in Platform
            if platform in platforms
            for relative_path, dimension in ICON_TABLES[platform]
        ]
        targets = [target for target, _ in table]

        semaphore = asyncio.Semaphore(self.config.max_workers)

        async def resize(destination: Path, dimension: int) -> Path:
            async with semaphore:
                return await asyncio.to_thread(resize_icon, source, dimension, destination)

        logger.info("Updating app icons", source=str(source), count=len(table))
        results = await asyncio.gather(
            *(resize(target, dimension) for target, dimension in table),
            return_exceptions=True,
        )

        failures = {
            str(target): str(result)
            for target, result in zip(targets, results)
            if isinstance(result, BaseException)
        }
        if failures:
            for path, error in failures.items():
                logger.error("Icon resize failed", path=path, error=error)
            raise AssetGenerationError(message="Icon generation failed", failures=failures)

        logger.info("App icons updated", count=len(targets))
        return AssetUpdateOutput(source=source, written=targets)
