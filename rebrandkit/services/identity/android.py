"""
Android identity rewriting.

Android identifies an app by a package hierarchy: the manifest package, the
Gradle applicationId and the directory that holds MainActivity must all agree.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from pydantic import BaseModel, Field

from ...core.exceptions import (
    ManifestIdentifierNotFoundError,
    SourceEntryMissingError,
    StructuralNotFoundError,
)
from ...core.files import read_text, write_text
from ...core.logging import get_logger
from .patterns import (
    GRADLE_APPLICATION_ID,
    GRADLE_NAMESPACE,
    MANIFEST_LABEL,
    MANIFEST_PACKAGE,
    SOURCE_PACKAGE_DECLARATION,
)

logger = get_logger(__name__)

APP_DIR = Path("android") / "app"
MAIN_DIR = APP_DIR / "src" / "main"
MANIFEST_PATH = MAIN_DIR / "AndroidManifest.xml"
BUILD_DESCRIPTORS = ("build.gradle", "build.gradle.kts")
SOURCE_ROOTS = ("kotlin", "java")
# Priority order: the first one present wins
ENTRY_FILES = ("MainActivity.kt", "MainActivity.java")


class AndroidRewriteOutput(BaseModel):
    """Result of rewriting the Android identity."""

    old_package: str
    new_package: str
    entry_file: Path = Field(description="Relocated main activity source")
    changed_files: list[Path] = Field(default_factory=list)


def package_dir(source_root: Path, package: str) -> Path:
    """Directory of a dotted package under a source root."""
    return source_root.joinpath(*package.split("."))


class AndroidIdentityRewriter:
    """Applies a new package identity to the Android half of a Flutter project."""

    async def rewrite(
        self,
        working_copy: Path,
        bundle_id: str,
        display_name: str | None = None,
    ) -> AndroidRewriteOutput:
        """Rename the Android package and move the entry activity.

        Args:
            working_copy: Root of the working copy
            bundle_id: New package identifier
            display_name: New app label; the label is left alone when None

        Returns:
            AndroidRewriteOutput describing the rename

        Raises:
            ManifestIdentifierNotFoundError: If the manifest has no package attribute
            StructuralNotFoundError: If the Gradle descriptor or its applicationId is missing
            SourceEntryMissingError: If no MainActivity exists under the old package path
        """
        manifest_path = working_copy / MANIFEST_PATH
        if not manifest_path.is_file():
            raise ManifestIdentifierNotFoundError(
                message="AndroidManifest.xml not found",
                file_path=str(manifest_path),
            )

        manifest = await read_text(manifest_path)
        old_package = MANIFEST_PACKAGE.extract(manifest)
        if not old_package:
            raise ManifestIdentifierNotFoundError(
                message="Could not find the package name in AndroidManifest.xml",
                file_path=str(manifest_path),
                pattern=MANIFEST_PACKAGE.regex.pattern,
            )
        logger.info("Renaming Android package", old_package=old_package, new_package=bundle_id)

        manifest, _ = MANIFEST_PACKAGE.substitute(manifest, bundle_id)
        if display_name is not None:
            manifest, count = MANIFEST_LABEL.substitute(manifest, display_name)
            if not count:
                logger.debug("No android:label in manifest, label left unchanged")
        await write_text(manifest_path, manifest)
        changed = [manifest_path]

        changed.append(await self._rewrite_build_descriptor(working_copy, old_package, bundle_id))

        entry_file = self._relocate_entry(working_copy, old_package, bundle_id)
        source = await read_text(entry_file)
        source, _ = SOURCE_PACKAGE_DECLARATION.substitute(source, bundle_id)
        await write_text(entry_file, source)
        changed.append(entry_file)

        logger.info("Android identity updated", entry_file=str(entry_file))
        return AndroidRewriteOutput(
            old_package=old_package,
            new_package=bundle_id,
            entry_file=entry_file,
            changed_files=changed,
        )

    async def _rewrite_build_descriptor(self, working_copy: Path, old_package: str, bundle_id: str) -> Path:
        """Update applicationId, and namespace where it still names the old package."""
        candidates = [working_copy / APP_DIR / name for name in BUILD_DESCRIPTORS]
        descriptor = next((path for path in candidates if path.is_file()), None)
        if descriptor is None:
            raise StructuralNotFoundError(
                message="Android build descriptor not found",
                file_path=str(candidates[0]),
            )

        content = await read_text(descriptor)
        content, count = GRADLE_APPLICATION_ID.substitute(content, bundle_id)
        if not count:
            raise StructuralNotFoundError(
                message="Could not find applicationId",
                file_path=str(descriptor),
                pattern=GRADLE_APPLICATION_ID.regex.pattern,
            )
        # AGP 8 resolves ".MainActivity" against the namespace
        if GRADLE_NAMESPACE.extract(content) == old_package:
            content, _ = GRADLE_NAMESPACE.substitute(content, bundle_id)
        await write_text(descriptor, content)
        return descriptor

    def _locate_entry(self, working_copy: Path, old_package: str) -> tuple[Path, Path]:
        """Find (source_root, entry_file) for the old package."""
        for root_name in SOURCE_ROOTS:
            source_root = working_copy / MAIN_DIR / root_name
            old_dir = package_dir(source_root, old_package)
            for file_name in ENTRY_FILES:
                candidate = old_dir / file_name
                if candidate.is_file():
                    return source_root, candidate

        raise SourceEntryMissingError(
            message=f"Neither {' nor '.join(ENTRY_FILES)} found for package '{old_package}'",
            file_path=str(package_dir(working_copy / MAIN_DIR / SOURCE_ROOTS[0], old_package)),
        )

    def _relocate_entry(self, working_copy: Path, old_package: str, bundle_id: str) -> Path:
        """Move the entry file to the new package directory and prune emptied folders."""
        source_root, entry = self._locate_entry(working_copy, old_package)
        new_dir = package_dir(source_root, bundle_id)
        new_dir.mkdir(parents=True, exist_ok=True)
        target = new_dir / entry.name

        if entry.parent.resolve() == new_dir.resolve():
            return target

        shutil.move(str(entry), str(target))
        logger.info("Moved entry activity", source=str(entry), target=str(target))

        directory = entry.parent
        while directory != source_root and directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()
            directory = directory.parent
        return target
