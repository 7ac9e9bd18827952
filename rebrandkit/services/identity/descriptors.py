"""
Flutter descriptor rewriting: pubspec version stamping and runtime config constants.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from pathlib import Path

from dotenv import set_key

from ...core.exceptions import VersionLineNotFoundError
from ...core.files import read_text, write_text
from ...core.logging import get_logger
from ...models.project import ProjectIdentity
from .patterns import PUBSPEC_BUILD_NUMBER, PUBSPEC_VERSION, TextPattern, dart_constant

logger = get_logger(__name__)

PUBSPEC_PATH = Path("pubspec.yaml")
RUNTIME_CONFIG_PATH = Path("lib") / "config.dart"
ENV_FILE_PATH = Path(".env")

# Templates declare the category id either as an int or as a quoted String.
OFFLINE_CATEGORY_ID = (
    dart_constant("OFFLINE_CATEGORY_ID", "int"),
    dart_constant("OFFLINE_CATEGORY_ID", "String"),
)
API_URL = (dart_constant("API_URL", "String"),)
PRODUCT_ID = (dart_constant("PRODUCT_ID", "String"),)


class VersionFormat(str, Enum):
    """Shape of the pubspec version line.

    Android builds take the build number from the '+N' suffix; the iOS release
    flow writes the bare version name.
    """

    NAME_AND_CODE = "name+code"
    NAME_ONLY = "name"


class VersionStamper:
    """Rewrites the `version:` line of pubspec.yaml."""

    def render(self, current: str, version_name: str, version_code: int | None, fmt: VersionFormat) -> str:
        """Build the new version value.

        For NAME_AND_CODE without an explicit code the existing build number is
        kept, falling back to 1.
        """
        if fmt == VersionFormat.NAME_ONLY:
            return version_name
        if version_code is None:
            existing = PUBSPEC_BUILD_NUMBER.search(current)
            version_code = int(existing.group("code")) if existing else 1
        return f"{version_name}+{version_code}"

    async def stamp(
        self,
        working_copy: Path,
        version_name: str,
        version_code: int | None,
        fmt: VersionFormat,
    ) -> str:
        """Stamp the version into pubspec.yaml.

        Returns:
            The version value written

        Raises:
            VersionLineNotFoundError: If pubspec.yaml or its version line is missing
        """
        pubspec_path = working_copy / PUBSPEC_PATH
        if not pubspec_path.is_file():
            raise VersionLineNotFoundError(message="pubspec.yaml not found", file_path=str(pubspec_path))

        content = await read_text(pubspec_path)
        current = PUBSPEC_VERSION.extract(content)
        if current is None:
            raise VersionLineNotFoundError(
                message="No version line to stamp",
                file_path=str(pubspec_path),
                pattern=PUBSPEC_VERSION.regex.pattern,
            )

        version = self.render(current, version_name, version_code, fmt)
        content, _ = PUBSPEC_VERSION.substitute(content, version)
        await write_text(pubspec_path, content)
        logger.info("Version stamped", previous=current, version=version, format=fmt.value)
        return version


class RuntimeConfigRewriter:
    """Substitutes runtime settings into lib/config.dart and the .env file.

    A setting whose declaration is absent is skipped; templates may omit
    settings they do not use. The .env file is created when missing and only
    the keys it carries for the app are updated.
    """

    def settings_for(self, identity: ProjectIdentity) -> list[tuple[str, tuple[TextPattern, ...], str]]:
        return [
            ("OFFLINE_CATEGORY_ID", OFFLINE_CATEGORY_ID, str(identity.offline_category_id)),
            ("API_URL", API_URL, identity.api_url),
            ("PRODUCT_ID", PRODUCT_ID, identity.effective_product_id),
        ]

    def env_values(self, identity: ProjectIdentity) -> dict[str, str]:
        return {
            "OFFLINE_CATEGORY_ID": str(identity.offline_category_id),
            "API_URL": identity.api_url,
        }

    async def rewrite(self, working_copy: Path, identity: ProjectIdentity) -> list[str]:
        """Apply every declared setting and update .env.

        Returns:
            Names of the config.dart settings that were found and written
        """
        await self.write_env(working_copy, identity)

        config_path = working_copy / RUNTIME_CONFIG_PATH
        if not config_path.is_file():
            logger.warning("Runtime config file not found, settings not applied", path=str(config_path))
            return []

        content = await read_text(config_path)
        applied: list[str] = []
        for name, patterns, value in self.settings_for(identity):
            for pattern in patterns:
                content, count = pattern.substitute(content, value)
                if count:
                    applied.append(name)
                    break
            else:
                logger.debug("Setting not declared, skipped", setting=name)

        await write_text(config_path, content)
        logger.info("Runtime config updated", settings=applied)
        return applied

    async def write_env(self, working_copy: Path, identity: ProjectIdentity) -> Path:
        """Set the runtime keys in <working copy>/.env, keeping any other entries."""
        env_path = working_copy / ENV_FILE_PATH
        env_path.touch()
        for key, value in self.env_values(identity).items():
            await asyncio.to_thread(set_key, env_path, key, value, quote_mode="never")
        logger.info("Environment file updated", path=str(env_path), keys=list(self.env_values(identity)))
        return env_path
