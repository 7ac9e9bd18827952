"""
Rebrand request models.

These models describe the identity a template project is rebranded to and the
platforms, mode and signing parameters of a single pipeline run.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator

BUNDLE_ID_PATTERN = re.compile(r"[a-zA-Z0-9]+(\.[a-zA-Z0-9]+)+")
VERSION_NAME_PATTERN = re.compile(r"\d+\.\d+\.\d+")
BUNDLE_ID_RULE = (
    "A valid bundle ID consists of alphanumeric segments separated by dots "
    "and does not start or end with a dot"
)


def is_valid_bundle_id(value: str) -> bool:
    """Check a bundle identifier against the whole-string segment rule."""
    return BUNDLE_ID_PATTERN.fullmatch(value) is not None


def convert_to_folder_name(bundle_id: str) -> str:
    """Convert a bundle identifier to its output folder name.

    Segments are alphanumeric, so replacing every dot with an underscore keeps
    distinct identifiers distinct.

    Args:
        bundle_id: Reverse-DNS identifier such as 'com.acme.app'

    Returns:
        str: The folder name, e.g. 'com_acme_app'.
    """
    return bundle_id.replace(".", "_")


class Platform(str, Enum):
    """Target platforms."""

    ANDROID = "android"
    IOS = "ios"


class BuildMode(str, Enum):
    """Build modes."""

    DEBUG = "Debug"
    RELEASE = "Release"


class ProjectIdentity(BaseModel):
    """The identity a template is rebranded to."""

    bundle_id: str = Field(description="Reverse-DNS bundle/package identifier")
    display_name: str = Field(min_length=1, description="Human-readable app name")
    offline_category_id: int = Field(description="OFFLINE_CATEGORY_ID runtime setting")
    api_url: str = Field(description="API_URL runtime setting")
    version_name: str | None = Field(default=None, description="Semantic version, Release only")
    version_code: int | None = Field(default=None, ge=1, description="Build number, Release only")
    product_id: str | None = Field(default=None, description="PRODUCT_ID runtime setting")

    @field_validator("bundle_id")
    @classmethod
    def _check_bundle_id(cls, value: str) -> str:
        if not is_valid_bundle_id(value):
            raise ValueError(BUNDLE_ID_RULE)
        return value

    @field_validator("api_url")
    @classmethod
    def _check_api_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("API URL must start with http:// or https://")
        return value

    @field_validator("version_name")
    @classmethod
    def _check_version_name(cls, value: str | None) -> str | None:
        if value is not None and not VERSION_NAME_PATTERN.fullmatch(value):
            raise ValueError("Version name must look like 1.2.3")
        return value

    @property
    def folder_name(self) -> str:
        """Output and working-copy folder name for this identity."""
        return convert_to_folder_name(self.bundle_id)

    @property
    def package_segments(self) -> list[str]:
        """Directory segments of the source package path."""
        return self.bundle_id.split(".")

    @property
    def effective_product_id(self) -> str:
        """Product identifier written to runtime config; the bundle id unless overridden."""
        return self.product_id or self.bundle_id


class IosSigning(BaseModel):
    """Automatic-signing parameters for the iOS project."""

    team_id: str = Field(min_length=1, description="Apple Development Team ID")
    style: str = Field(default="Automatic", description="CODE_SIGN_STYLE")
    identity: str = Field(default="iPhone Developer", description="CODE_SIGN_IDENTITY")


class DistinguishedName(BaseModel):
    """X.500 distinguished name of a signing certificate."""

    common_name: str = Field(min_length=1)
    organizational_unit: str = Field(default="")
    organization: str = Field(default="")
    locality: str = Field(default="")
    state: str = Field(default="")
    country: str = Field(default="", max_length=2)

    def render(self) -> str:
        """Render as a keytool -dname value, omitting empty fields."""
        parts = [
            ("CN", self.common_name),
            ("OU", self.organizational_unit),
            ("O", self.organization),
            ("L", self.locality),
            ("ST", self.state),
            ("C", self.country),
        ]
        return ", ".join(f"{key}={_escape_dn(value)}" for key, value in parts if value)


def _escape_dn(value: str) -> str:
    return re.sub(r'([,+"\\<>;=])', r"\\\1", value)


class SigningCredentials(BaseModel):
    """Parameters for generating an Android upload keystore."""

    alias: str = Field(default="upload", min_length=1)
    password: SecretStr = Field(description="Store and key password")
    validity_days: int = Field(default=10000, ge=1)
    distinguished_name: DistinguishedName

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: SecretStr) -> SecretStr:
        if len(value.get_secret_value()) < 6:
            raise ValueError("Keystore password must be at least 6 characters")
        return value


class RebrandRequest(BaseModel):
    """Everything a single pipeline run needs."""

    template: Path = Field(description="Template project directory")
    identity: ProjectIdentity
    mode: BuildMode = Field(default=BuildMode.DEBUG)
    platforms: set[Platform] = Field(default_factory=lambda: {Platform.ANDROID})
    ios_signing: IosSigning | None = Field(default=None)
    ios_deployment_target: str | None = Field(default=None, description="e.g. '13.0'")

    @field_validator("platforms")
    @classmethod
    def _check_platforms(cls, value: set[Platform]) -> set[Platform]:
        if not value:
            raise ValueError("At least one platform must be enabled")
        return value

    @property
    def ordered_platforms(self) -> list[Platform]:
        """Enabled platforms in a stable order (Android first)."""
        return [p for p in Platform if p in self.platforms]

    @property
    def is_release(self) -> bool:
        return self.mode == BuildMode.RELEASE
