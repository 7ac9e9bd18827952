"""
Custom exception hierarchy for RebrandKit.

All exceptions inherit from RebrandError to enable consistent error handling
across the pipeline. Each exception type carries the file, tool or command it
concerns so the operator can see exactly what needs attention.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class RebrandError(Exception):
    """Base exception for all RebrandKit errors."""

    message: str
    context: dict[str, Any] = field(default_factory=dict)
    cause: Exception | None = None

    def __str__(self) -> str:
        ctx = f" | context: {self.context}" if self.context else ""
        cause = f" | caused by: {self.cause}" if self.cause else ""
        return f"{self.message}{ctx}{cause}"


@dataclass
class ValidationError(RebrandError):
    """Raised when a rebrand request field is invalid."""

    field_name: str | None = None
    actual_value: Any = None

    def __str__(self) -> str:
        base = super().__str__()
        if self.field_name:
            return f"Validation failed for '{self.field_name}': {base}"
        return f"Validation failed: {base}"


@dataclass
class UserCancelledError(RebrandError):
    """Raised when the operator declines a destructive step."""


@dataclass
class SelfNestingError(RebrandError):
    """Raised when a working copy would land inside its own template."""

    source: str = ""
    destination: str = ""

    def __str__(self) -> str:
        return f"Cannot copy '{self.source}' into itself or a subdirectory of itself, '{self.destination}'"


@dataclass
class StructuralNotFoundError(RebrandError):
    """Raised when an expected file, identifier or pattern is missing from the tree.

    Fatal: later steps assume the structure was found.
    """

    file_path: str = ""
    pattern: str = ""

    def __str__(self) -> str:
        where = f" in '{self.file_path}'" if self.file_path else ""
        what = f" (pattern: {self.pattern})" if self.pattern else ""
        return f"{super().__str__()}{where}{what}"


@dataclass
class ManifestIdentifierNotFoundError(StructuralNotFoundError):
    """Raised when the Android manifest carries no package identifier."""


@dataclass
class SourceEntryMissingError(StructuralNotFoundError):
    """Raised when no main activity source file exists under the old package path."""


@dataclass
class VersionLineNotFoundError(StructuralNotFoundError):
    """Raised when the version descriptor has no version line to stamp."""


@dataclass
class TemplateNotFoundError(StructuralNotFoundError):
    """Raised when the template project directory does not exist."""


@dataclass
class CredentialCacheIncompleteError(StructuralNotFoundError):
    """Raised when only one half of the cached keystore/secrets pair exists."""


@dataclass
class ToolUnavailableError(RebrandError):
    """Raised when a required external tool is not available."""

    tool_name: str = ""
    expected_path: str = ""
    install_hint: str = ""

    def __str__(self) -> str:
        hint = f" Install hint: {self.install_hint}" if self.install_hint else ""
        return f"Tool '{self.tool_name}' not found at '{self.expected_path}'.{hint}"


@dataclass
class CredentialToolUnavailableError(ToolUnavailableError):
    """Raised when the key-generation tool is missing and a keystore must be created."""


@dataclass
class BuildToolFailedError(RebrandError):
    """Raised when an external build command exits with a non-zero status."""

    platform: str = ""
    command: str = ""
    exit_code: int = 0

    def __str__(self) -> str:
        return f"[{self.platform}] '{self.command}' exited with code {self.exit_code}: {self.message}"


@dataclass
class AssetGenerationError(RebrandError):
    """Raised after an icon set finished with one or more failed resizes."""

    failures: dict[str, str] = field(default_factory=dict)

    def __str__(self) -> str:
        details = "; ".join(f"{path}: {error}" for path, error in self.failures.items())
        return f"{self.message} ({len(self.failures)} failed): {details}"


@dataclass
class PipelineError(RebrandError):
    """Raised when pipeline orchestration fails."""

    stage: str = ""
    pipeline_run_id: str = ""

    def __str__(self) -> str:
        base = super().__str__()
        return f"Pipeline error at stage '{self.stage}' (run: {self.pipeline_run_id}): {base}"


@dataclass
class ArtifactNotFoundWarning(UserWarning):
    """An expected build output was not found after the build.

    Never raised by the collector; accumulated and reported per platform.
    """

    platform: str
    mode: str
    expected_path: Path

    def __str__(self) -> str:
        return f"[{self.platform}/{self.mode}] artifact not found: {self.expected_path}"
