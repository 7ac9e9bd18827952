"""
Credential Store.

Keeps the Android upload keystore and its key.properties secrets file in a
durable cache outside any working copy. A keystore is generated at most once
per template; later runs copy the cached pair. Replacing a keystore would
orphan every artifact already signed with it, so nothing here ever overwrites
a cached credential.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel

from ...core.config import PathsConfig, SigningConfig, ToolsConfig
from ...core.exceptions import (
    BuildToolFailedError,
    CredentialCacheIncompleteError,
    CredentialToolUnavailableError,
)
from ...core.files import write_text
from ...core.logging import command_sink, get_logger
from ...core.process import CommandRunner, format_command
from ...core.tools import find_tool
from ...models.project import Platform, SigningCredentials

logger = get_logger(__name__)

CredentialPrompt = Callable[[], SigningCredentials]

ANDROID_DIR = Path("android")
ANDROID_APP_DIR = ANDROID_DIR / "app"


class CredentialState(str, Enum):
    """Lifecycle state of the cached credential pair."""

    ABSENT = "absent"
    READY = "ready"
    INCOMPLETE = "incomplete"


class CredentialOutput(BaseModel):
    """Where the credentials landed in the working copy."""

    keystore_path: Path
    properties_path: Path
    generated: bool


class CredentialStore:
    """Generates or reuses the signing keystore for release builds."""

    def __init__(
        self,
        paths: PathsConfig,
        tools: ToolsConfig,
        signing: SigningConfig,
        runner: CommandRunner | None = None,
    ) -> None:
        self.paths = paths
        self.tools = tools
        self.signing = signing
        self.runner = runner or CommandRunner()

    def cache_dir(self, namespace: str) -> Path:
        """Cache directory for one template."""
        return self.paths.credentials_root / namespace

    def _cache_files(self, namespace: str) -> tuple[Path, Path]:
        cache = self.cache_dir(namespace)
        return cache / self.signing.keystore_name, cache / self.signing.properties_name

    def state(self, namespace: str) -> CredentialState:
        """Inspect the cache without touching it."""
        keystore, properties = self._cache_files(namespace)
        present = [keystore.is_file(), properties.is_file()]
        if all(present):
            return CredentialState.READY
        if any(present):
            return CredentialState.INCOMPLETE
        return CredentialState.ABSENT

    def render_properties(self, credentials: SigningCredentials) -> str:
        """key.properties content; storeFile is relative to android/app."""
        password = credentials.password.get_secret_value()
        return (
            f"storePassword={password}\n"
            f"keyPassword={password}\n"
            f"keyAlias={credentials.alias}\n"
            f"storeFile={self.signing.keystore_name}\n"
        )

    async def ensure(self, working_copy: Path, namespace: str, prompt: CredentialPrompt) -> CredentialOutput:
        """Make signing credentials available inside the working copy.

        Args:
            working_copy: Root of the working copy
            namespace: Cache namespace, the template's folder name
            prompt: Collects credential parameters; only called when generating

        Returns:
            CredentialOutput with the installed paths

        Raises:
            CredentialCacheIncompleteError: If only half of the cached pair exists
            CredentialToolUnavailableError: If keytool is needed but missing
            BuildToolFailedError: If keytool exits non-zero
        """
        state = self.state(namespace)
        keystore, properties = self._cache_files(namespace)
        logger.info("Signing credential state", state=state.value, cache=str(self.cache_dir(namespace)))

        if state == CredentialState.INCOMPLETE:
            missing = keystore if not keystore.is_file() else properties
            raise CredentialCacheIncompleteError(
                message="Cached signing credentials are incomplete; restore or remove them manually",
                file_path=str(missing),
            )

        generated = False
        if state == CredentialState.ABSENT:
            await self._generate(keystore, properties, prompt)
            generated = True

        return await self._install(keystore, properties, working_copy, generated)

    async def _generate(self, keystore: Path, properties: Path, prompt: CredentialPrompt) -> None:
        keytool = find_tool("keytool", self.tools, error_type=CredentialToolUnavailableError)
        credentials = prompt()
        password = credentials.password.get_secret_value()

        cmd = [
            str(keytool),
            "-genkeypair",
            "-v",
            "-keystore", str(keystore),
            "-storetype", self.signing.store_type,
            "-keyalg", self.signing.key_algorithm,
            "-keysize", str(self.signing.key_size),
            "-validity", str(credentials.validity_days),
            "-alias", credentials.alias,
            "-storepass", password,
            "-keypass", password,
            "-dname", credentials.distinguished_name.render(),
            "-noprompt",
        ]

        keystore.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Generating upload keystore", keystore=str(keystore), alias=credentials.alias)
        exit_code = await self.runner.run(cmd, sink=command_sink("keytool"), redact=[password])
        if exit_code != 0:
            keystore.unlink(missing_ok=True)
            raise BuildToolFailedError(
                message="Keystore generation failed",
                platform=Platform.ANDROID.value,
                command=format_command(cmd, redact=[password]),
                exit_code=exit_code,
            )

        await write_text(properties, self.render_properties(credentials))
        for path in (keystore, properties):
            os.chmod(path, 0o600)
        logger.info("Upload keystore cached", keystore=str(keystore))

    async def _install(
        self, keystore: Path, properties: Path, working_copy: Path, generated: bool
    ) -> CredentialOutput:
        keystore_target = working_copy / ANDROID_APP_DIR / self.signing.keystore_name
        properties_target = working_copy / ANDROID_DIR / self.signing.properties_name
        keystore_target.parent.mkdir(parents=True, exist_ok=True)

        await asyncio.to_thread(shutil.copyfile, keystore, keystore_target)
        await asyncio.to_thread(shutil.copyfile, properties, properties_target)
        logger.info("Signing credentials installed", keystore=str(keystore_target), generated=generated)
        return CredentialOutput(
            keystore_path=keystore_target,
            properties_path=properties_target,
            generated=generated,
        )
