"""
Project Materializer Service.

Produces an isolated working copy of a template project. The rest of the
pipeline only ever touches the copy, so an interrupted run cannot corrupt the
template.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from collections.abc import Callable
from pathlib import Path

from ...core.config import PathsConfig
from ...core.exceptions import SelfNestingError, TemplateNotFoundError, UserCancelledError
from ...core.logging import get_logger

logger = get_logger(__name__)

ConfirmCallback = Callable[[str], bool]


def is_same_or_nested(source: Path, destination: Path) -> bool:
    """Return True if destination resolves to source or to a path below it."""
    resolved_src = source.resolve()
    resolved_dest = destination.resolve()
    return resolved_dest == resolved_src or resolved_dest.is_relative_to(resolved_src)


class MaterializerService:
    """Service for creating working copies of template projects."""

    def __init__(self, paths: PathsConfig, confirm: ConfirmCallback) -> None:
        """Initialize the materializer.

        Args:
            paths: Filesystem roots; working copies go under workspace_root
            confirm: Asked once before an existing working copy is replaced
        """
        self.paths = paths
        self.confirm = confirm

    def resolve_template(self, name_or_path: str | Path) -> Path:
        """Resolve a template reference.

        Absolute paths and values containing a path separator are treated as
        paths; a bare name is looked up under templates_root.
        """
        value = str(name_or_path)
        if os.path.isabs(value) or "/" in value or os.sep in value:
            return Path(value).resolve()
        return (self.paths.templates_root / value).resolve()

    def destination_for(self, folder_name: str) -> Path:
        """Working copy location for an output folder name."""
        return self.paths.workspace_root / folder_name

    async def materialize(self, template: Path, folder_name: str) -> Path:
        """Copy the template into a fresh working copy.

        Args:
            template: Template project directory
            folder_name: Folder name derived from the bundle identifier

        Returns:
            Path to the working copy

        Raises:
            SelfNestingError: If the destination is the template or inside it
            TemplateNotFoundError: If the template directory does not exist
            UserCancelledError: If the operator declines replacing an existing copy
        """
        source = template.resolve()
        destination = self.destination_for(folder_name).resolve()

        if is_same_or_nested(source, destination):
            raise SelfNestingError(
                message="Working copy would be nested inside its template",
                source=str(source),
                destination=str(destination),
            )

        if not source.is_dir():
            raise TemplateNotFoundError(
                message="Template project directory not found",
                file_path=str(source),
            )

        if destination.exists():
            if not self.confirm(f"'{destination}' already exists. Delete it and create a fresh copy?"):
                logger.info("Overwrite declined", destination=str(destination))
                raise UserCancelledError(
                    message="Working copy already exists and overwrite was declined",
                    context={"destination": str(destination)},
                )
            logger.info("Removing existing working copy", destination=str(destination))
            if destination.is_dir():
                await asyncio.to_thread(shutil.rmtree, destination)
            else:
                destination.unlink()

        logger.info("Creating working copy", source=str(source), destination=str(destination))
        destination.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(shutil.copytree, source, destination, symlinks=True)
        logger.info("Working copy created", destination=str(destination))
        return destination
