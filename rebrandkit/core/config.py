"""
Configuration management for RebrandKit.

Provides centralized, type-safe configuration with environment variable overrides
and sensible defaults for all pipeline components. Every filesystem root the
pipeline writes to lives here so that runs can be pointed at isolated trees.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file if it exists (looks in cwd and parent directories)
load_dotenv()


class PathsConfig(BaseModel):
    """Filesystem roots used by a pipeline run."""

    templates_root: Path = Field(
        default=Path(".."), description="Directory holding template projects referenced by bare name"
    )
    workspace_root: Path = Field(
        default=Path("./workspace"), description="Directory receiving working copies"
    )
    output_root: Path = Field(
        default=Path("./shippable"), description="Directory receiving collected artifacts"
    )
    credentials_root: Path = Field(
        default_factory=lambda: Path("~/.rebrandkit/credentials").expanduser(),
        description="Durable cache for signing keystores, outside any working copy",
    )
    ios_signing_xcconfig: Path = Field(
        default=Path("ios/config/build.xcconfig"),
        description="Signing xcconfig, relative to the working copy",
    )


class ToolsConfig(BaseModel):
    """External tools configuration."""

    flutter_path: Path | None = Field(default=None, description="Custom flutter path")
    xcodebuild_path: Path | None = Field(default=None, description="Custom xcodebuild path")
    pod_path: Path | None = Field(default=None, description="Custom CocoaPods path")
    keytool_path: Path | None = Field(default=None, description="Custom keytool path")

    def configured(self, tool_name: str) -> Path | None:
        """Return the explicitly configured path for a tool, if any."""
        return getattr(self, f"{tool_name}_path", None)


class SigningConfig(BaseModel):
    """Android upload keystore settings."""

    keystore_name: str = Field(default="upload-keystore.jks", description="Keystore file name")
    properties_name: str = Field(default="key.properties", description="Secrets file name")
    key_algorithm: str = Field(default="RSA", description="keytool -keyalg")
    key_size: int = Field(default=2048, ge=1024, description="keytool -keysize")
    store_type: str = Field(default="JKS", description="keytool -storetype")
    default_validity_days: int = Field(default=10000, ge=1, description="Default key validity")


class BuildConfig(BaseModel):
    """Build orchestration configuration."""

    clean_first: bool = Field(default=False, description="Run 'flutter clean' before release builds")


class AssetsConfig(BaseModel):
    """Icon generation configuration."""

    icon_source: Path | None = Field(
        default=None, description="Source icon; defaults to icon.png at the working copy root"
    )
    max_workers: int = Field(default=4, ge=1, description="Concurrent resize operations")


class Config(BaseModel):
    """Root configuration for RebrandKit."""

    project_name: str = Field(default="RebrandKit", description="Project identifier")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    paths: PathsConfig = Field(default_factory=PathsConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    assets: AssetsConfig = Field(default_factory=AssetsConfig)

    model_config = {"extra": "ignore"}

    @classmethod
    def from_env(cls) -> Config:
        """Create configuration from environment variables."""
        paths = PathsConfig()
        return cls(
            log_level=os.environ.get("REBRAND_LOG_LEVEL", "INFO"),  # type: ignore
            paths=PathsConfig(
                templates_root=Path(os.environ.get("REBRAND_TEMPLATES_ROOT", str(paths.templates_root))),
                workspace_root=Path(os.environ.get("REBRAND_WORKSPACE_ROOT", str(paths.workspace_root))),
                output_root=Path(os.environ.get("REBRAND_OUTPUT_ROOT", str(paths.output_root))),
                credentials_root=Path(
                    os.environ.get("REBRAND_CREDENTIALS_ROOT", str(paths.credentials_root))
                ).expanduser(),
            ),
            tools=ToolsConfig(
                flutter_path=_optional_path("REBRAND_FLUTTER_PATH"),
                xcodebuild_path=_optional_path("REBRAND_XCODEBUILD_PATH"),
                pod_path=_optional_path("REBRAND_POD_PATH"),
                keytool_path=_optional_path("REBRAND_KEYTOOL_PATH"),
            ),
            build=BuildConfig(
                clean_first=os.environ.get("REBRAND_CLEAN_FIRST", "false").lower() == "true",
            ),
        )


def _optional_path(name: str) -> Path | None:
    value = os.environ.get(name)
    return Path(value).expanduser() if value else None


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Get cached configuration instance."""
    return Config.from_env()
