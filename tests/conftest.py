"""Test configuration for RebrandKit."""

from __future__ import annotations

import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from PIL import Image

from rebrandkit.core.config import Config, PathsConfig, ToolsConfig
from rebrandkit.core.logging import LineSink
from rebrandkit.core.process import CommandRunner
from rebrandkit.models.project import (
    BuildMode,
    DistinguishedName,
    Platform,
    ProjectIdentity,
    RebrandRequest,
    SigningCredentials,
)

TEMPLATE_PACKAGE = "com.example.template"

MANIFEST = """<manifest xmlns:android="http://schemas.android.com/apk/res/android"
    package="com.example.template">
    <application
        android:label="Template App"
        android:name="${applicationName}"
        android:icon="@mipmap/ic_launcher">
        <activity
            android:name=".MainActivity"
            android:exported="true">
        </activity>
    </application>
</manifest>
"""

BUILD_GRADLE = """android {
    namespace "com.example.template"
    compileSdkVersion flutter.compileSdkVersion

    defaultConfig {
        applicationId "com.example.template"
        minSdkVersion flutter.minSdkVersion
        versionCode flutterVersionCode.toInteger()
    }
}
"""

MAIN_ACTIVITY = """package com.example.template

import io.flutter.embedding.android.FlutterActivity

class MainActivity: FlutterActivity() {
}
"""

INFO_PLIST = """<?xml version="1.0" encoding="UTF-8"?>
<plist version="1.0">
<dict>
	<key>CFBundleDisplayName</key>
	<string>Template App</string>
	<key>CFBundleIdentifier</key>
	<string>com.example.template</string>
	<key>CFBundleName</key>
	<string>template_app</string>
</dict>
</plist>
"""

PBXPROJ = """		97C147061CF9000F007C117D /* Debug */ = {
			buildSettings = {
				CODE_SIGN_STYLE = Manual;
				DEVELOPMENT_TEAM = "";
				IPHONEOS_DEPLOYMENT_TARGET = 11.0;
				PRODUCT_BUNDLE_IDENTIFIER = com.example.template;
			};
		};
		97C147071CF9000F007C117D /* Release */ = {
			buildSettings = {
				CODE_SIGN_STYLE = Manual;
				DEVELOPMENT_TEAM = "";
				IPHONEOS_DEPLOYMENT_TARGET = 11.0;
				PRODUCT_BUNDLE_IDENTIFIER = com.example.template;
			};
		};
		331C8088294A63A400263BE5 /* Debug */ = {
			buildSettings = {
				PRODUCT_BUNDLE_IDENTIFIER = com.example.template.RunnerTests;
			};
		};
"""

PODFILE = """# Uncomment this line to define a global platform for your project
# platform :ios, '11.0'

project 'Runner', {
  'Debug' => :debug,
  'Release' => :release,
}
"""

PUBSPEC = """name: template_app
description: A template Flutter app.
publish_to: 'none'
version: 1.0.0+7

environment:
  sdk: '>=3.0.0 <4.0.0'
"""

CONFIG_DART = """const int OFFLINE_CATEGORY_ID = 0;
const String API_URL = 'https://api.example.com';
const String PRODUCT_ID = 'com.example.template';
"""

FLUTTER_XCCONFIG = """#include "Generated.xcconfig"
"""


def write_flutter_template(root: Path) -> Path:
    """Write a minimal Flutter project with both native halves under root."""
    files = {
        "android/app/src/main/AndroidManifest.xml": MANIFEST,
        "android/app/build.gradle": BUILD_GRADLE,
        "android/app/src/main/kotlin/com/example/template/MainActivity.kt": MAIN_ACTIVITY,
        "ios/Runner/Info.plist": INFO_PLIST,
        "ios/Runner.xcodeproj/project.pbxproj": PBXPROJ,
        "ios/Podfile": PODFILE,
        "ios/Flutter/Debug.xcconfig": FLUTTER_XCCONFIG,
        "ios/Flutter/Release.xcconfig": FLUTTER_XCCONFIG,
        "pubspec.yaml": PUBSPEC,
        "lib/config.dart": CONFIG_DART,
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    Image.new("RGBA", (256, 256), (200, 30, 30, 255)).save(root / "icon.png", format="PNG")
    return root


@dataclass
class RecordedCall:
    """One command the fake runner was asked to spawn."""

    argv: list[str]
    cwd: Path | None
    redact: list[str] = field(default_factory=list)

    @property
    def tool(self) -> str:
        return Path(self.argv[0]).name


class FakeRunner(CommandRunner):
    """CommandRunner that records commands instead of spawning them.

    Args:
        exit_codes: Exit code per 1-based call index; unlisted calls exit 0
        on_run: Side effect run for every call, e.g. to create build outputs
    """

    def __init__(
        self,
        exit_codes: dict[int, int] | None = None,
        on_run: Callable[[RecordedCall], None] | None = None,
    ) -> None:
        self.exit_codes = exit_codes or {}
        self.on_run = on_run
        self.calls: list[RecordedCall] = []

    async def run(
        self,
        cmd: Sequence[str],
        cwd: Path | None = None,
        sink: LineSink | None = None,
        redact: Sequence[str] = (),
    ) -> int:
        call = RecordedCall(argv=list(cmd), cwd=cwd, redact=list(redact))
        self.calls.append(call)
        if self.on_run is not None:
            self.on_run(call)
        if sink is not None:
            sink("stdout", f"{call.tool} {' '.join(call.argv[1:3])}")
        return self.exit_codes.get(len(self.calls), 0)


def simulate_toolchain(call: RecordedCall) -> None:
    """Create the outputs a real toolchain would leave behind."""
    args = call.argv[1:]
    if call.tool == "keytool":
        Path(args[args.index("-keystore") + 1]).write_bytes(b"\xfe\xed\xfe\xed fake keystore")
        return

    cwd = call.cwd or Path.cwd()
    outputs = {
        ("build", "apk", "--debug"): ["build/app/outputs/apk/debug/app-debug.apk"],
        ("build", "apk", "--release"): ["build/app/outputs/apk/release/app-release.apk"],
        ("build", "appbundle", "--release"): ["build/app/outputs/bundle/release/app-release.aab"],
    }
    for relative in outputs.get(tuple(args[:3]), []):
        path = cwd / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(f"{relative}".encode())


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests.

    Yields:
        Path: A Path object pointing to the temporary directory.
            The directory is automatically cleaned up after the test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def template_dir(temp_dir):
    """Create a Flutter template project under templates/template_app.

    Returns:
        Path: Root of the template project.
    """
    return write_flutter_template(temp_dir / "templates" / "template_app")


@pytest.fixture
def working_copy(temp_dir):
    """Create a Flutter project standing in for an already materialized copy."""
    return write_flutter_template(temp_dir / "workspace" / "copy")


@pytest.fixture
def fake_tools(temp_dir):
    """Create placeholder executables for every native tool.

    Returns:
        ToolsConfig: Configuration pointing at the placeholders.
    """
    bin_dir = temp_dir / "bin"
    bin_dir.mkdir()
    paths = {}
    for tool in ("flutter", "xcodebuild", "pod", "keytool"):
        path = bin_dir / tool
        path.write_text("#!/bin/sh\nexit 0\n")
        path.chmod(0o755)
        paths[f"{tool}_path"] = path
    return ToolsConfig(**paths)


@pytest.fixture
def config(temp_dir, fake_tools):
    """Create a configuration whose roots all live in the temporary directory."""
    return Config(
        paths=PathsConfig(
            templates_root=temp_dir / "templates",
            workspace_root=temp_dir / "workspace",
            output_root=temp_dir / "shippable",
            credentials_root=temp_dir / "credentials",
        ),
        tools=fake_tools,
    )


@pytest.fixture
def no_host_tools(monkeypatch, temp_dir):
    """Hide any tool installed on the host from PATH and JAVA_HOME."""
    empty = temp_dir / "empty-path"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
    monkeypatch.delenv("JAVA_HOME", raising=False)


@pytest.fixture
def identity():
    return ProjectIdentity(
        bundle_id="com.acme.app",
        display_name="Acme App",
        offline_category_id=42,
        api_url="https://api.acme.test/v1",
    )


@pytest.fixture
def make_request(template_dir, identity):
    """Factory for rebrand requests against the template fixture."""

    def factory(
        mode: BuildMode = BuildMode.DEBUG,
        platforms: set[Platform] | None = None,
        **identity_updates,
    ) -> RebrandRequest:
        return RebrandRequest(
            template=template_dir,
            identity=identity.model_copy(update=identity_updates),
            mode=mode,
            platforms=platforms or {Platform.ANDROID},
        )

    return factory


@pytest.fixture
def signing_credentials():
    return SigningCredentials(
        alias="upload",
        password="s3cret-pass",
        validity_days=9000,
        distinguished_name=DistinguishedName(
            common_name="Jane Doe",
            organization="Acme, Inc.",
            country="US",
        ),
    )
