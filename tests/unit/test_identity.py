"""Unit tests for identity rewriting."""

from pathlib import Path

import pytest
from dotenv import dotenv_values

from rebrandkit.core.config import PathsConfig
from rebrandkit.core.exceptions import (
    ManifestIdentifierNotFoundError,
    SourceEntryMissingError,
    StructuralNotFoundError,
    VersionLineNotFoundError,
)
from rebrandkit.models.project import BuildMode, IosSigning, Platform, RebrandRequest
from rebrandkit.services.identity import (
    AndroidIdentityRewriter,
    IdentityRewriteService,
    IosIdentityRewriter,
    RuntimeConfigRewriter,
    VersionFormat,
    VersionStamper,
)

KOTLIN_ROOT = Path("android/app/src/main/kotlin")
MANIFEST = Path("android/app/src/main/AndroidManifest.xml")
GRADLE = Path("android/app/build.gradle")
PLIST = Path("ios/Runner/Info.plist")
PBXPROJ = Path("ios/Runner.xcodeproj/project.pbxproj")


@pytest.mark.asyncio
class TestAndroidIdentityRewriter:
    """Tests for the Android package rename."""

    async def test_rewrites_package_everywhere(self, working_copy):
        output = await AndroidIdentityRewriter().rewrite(working_copy, "com.acme.app", "Acme App")

        assert output.old_package == "com.example.template"
        manifest = (working_copy / MANIFEST).read_text()
        assert 'package="com.acme.app"' in manifest
        assert 'android:label="Acme App"' in manifest
        gradle = (working_copy / GRADLE).read_text()
        assert 'applicationId "com.acme.app"' in gradle
        assert 'namespace "com.acme.app"' in gradle

    async def test_moves_entry_and_prunes_old_directories(self, working_copy):
        await AndroidIdentityRewriter().rewrite(working_copy, "com.acme.app")

        new_entry = working_copy / KOTLIN_ROOT / "com/acme/app/MainActivity.kt"
        assert new_entry.is_file()
        assert new_entry.read_text().startswith("package com.acme.app\n")
        assert not (working_copy / KOTLIN_ROOT / "com/example").exists()
        assert (working_copy / KOTLIN_ROOT / "com").is_dir()

    async def test_new_package_nested_under_old(self, working_copy):
        await AndroidIdentityRewriter().rewrite(working_copy, "com.example.template.pro")

        assert (working_copy / KOTLIN_ROOT / "com/example/template/pro/MainActivity.kt").is_file()
        assert not (working_copy / KOTLIN_ROOT / "com/example/template/MainActivity.kt").exists()

    async def test_same_package_is_a_no_op_move(self, working_copy):
        output = await AndroidIdentityRewriter().rewrite(working_copy, "com.example.template")

        assert output.entry_file.is_file()

    async def test_java_entry_is_accepted(self, working_copy):
        kotlin_entry = working_copy / KOTLIN_ROOT / "com/example/template/MainActivity.kt"
        kotlin_entry.unlink()
        java_dir = working_copy / "android/app/src/main/java/com/example/template"
        java_dir.mkdir(parents=True)
        (java_dir / "MainActivity.java").write_text("package com.example.template;\n\npublic class MainActivity {}\n")

        output = await AndroidIdentityRewriter().rewrite(working_copy, "com.acme.app")

        assert output.entry_file.name == "MainActivity.java"
        assert output.entry_file.read_text().startswith("package com.acme.app;\n")

    async def test_missing_package_attribute(self, working_copy):
        (working_copy / MANIFEST).write_text("<manifest><application/></manifest>")

        with pytest.raises(ManifestIdentifierNotFoundError):
            await AndroidIdentityRewriter().rewrite(working_copy, "com.acme.app")

    async def test_missing_application_id(self, working_copy):
        (working_copy / GRADLE).write_text("android {\n}\n")

        with pytest.raises(StructuralNotFoundError):
            await AndroidIdentityRewriter().rewrite(working_copy, "com.acme.app")

    async def test_missing_entry_file(self, working_copy):
        (working_copy / KOTLIN_ROOT / "com/example/template/MainActivity.kt").unlink()

        with pytest.raises(SourceEntryMissingError):
            await AndroidIdentityRewriter().rewrite(working_copy, "com.acme.app")

    async def test_preserves_crlf_line_endings(self, working_copy):
        manifest = working_copy / MANIFEST
        manifest.write_bytes(manifest.read_bytes().replace(b"\n", b"\r\n"))

        await AndroidIdentityRewriter().rewrite(working_copy, "com.acme.app")

        content = manifest.read_bytes()
        assert b"\r\n" in content
        assert b"\n" not in content.replace(b"\r\n", b"")


@pytest.mark.asyncio
class TestIosIdentityRewriter:
    """Tests for the iOS bundle identity rewrite."""

    async def test_rewrites_bundle_identifier(self, working_copy):
        rewriter = IosIdentityRewriter(Path("ios/config/build.xcconfig"))

        output = await rewriter.rewrite(working_copy, "com.acme.app", "Acme App")

        plist = (working_copy / PLIST).read_text()
        assert "<string>com.acme.app</string>" in plist
        assert "<string>Acme App</string>" in plist
        pbxproj = (working_copy / PBXPROJ).read_text()
        assert pbxproj.count("PRODUCT_BUNDLE_IDENTIFIER = com.acme.app;") == 2
        assert "PRODUCT_BUNDLE_IDENTIFIER = com.acme.app.RunnerTests;" in pbxproj
        assert not output.signing_configured

    async def test_writes_signing_settings(self, working_copy):
        rewriter = IosIdentityRewriter(Path("ios/config/build.xcconfig"))

        output = await rewriter.rewrite(
            working_copy,
            "com.acme.app",
            signing=IosSigning(team_id="ABCDE12345"),
            deployment_target="13.0",
        )

        assert output.signing_configured
        xcconfig = (working_copy / "ios/config/build.xcconfig").read_text()
        assert xcconfig == (
            "CODE_SIGN_STYLE = Automatic\n"
            "DEVELOPMENT_TEAM = ABCDE12345\n"
            "CODE_SIGN_IDENTITY = iPhone Developer\n"
        )
        pbxproj = (working_copy / PBXPROJ).read_text()
        assert pbxproj.count("DEVELOPMENT_TEAM = ABCDE12345;") == 2
        assert pbxproj.count("CODE_SIGN_STYLE = Automatic;") == 2
        assert pbxproj.count("IPHONEOS_DEPLOYMENT_TARGET = 13.0;") == 2
        assert "platform :ios, '13.0'" in (working_copy / "ios/Podfile").read_text()
        for name in ("Debug", "Release"):
            assert (working_copy / f"ios/Flutter/{name}.xcconfig").read_text() == (
                '#include "Generated.xcconfig"\n#include "../config/build.xcconfig"\n'
            )

    async def test_signing_reaches_project_without_team_setting(self, working_copy):
        pbxproj_path = working_copy / PBXPROJ
        pbxproj_path.write_text(
            "\n".join(line for line in pbxproj_path.read_text().splitlines() if "DEVELOPMENT_TEAM" not in line)
        )
        rewriter = IosIdentityRewriter(Path("ios/config/build.xcconfig"))

        output = await rewriter.rewrite(working_copy, "com.acme.app", signing=IosSigning(team_id="ABCDE12345"))

        assert output.signing_configured
        assert "DEVELOPMENT_TEAM" not in pbxproj_path.read_text()
        release = (working_copy / "ios/Flutter/Release.xcconfig").read_text()
        assert '#include "../config/build.xcconfig"' in release

    async def test_include_is_added_once(self, working_copy):
        rewriter = IosIdentityRewriter(Path("ios/config/build.xcconfig"))
        signing = IosSigning(team_id="ABCDE12345")

        await rewriter.rewrite(working_copy, "com.acme.app", signing=signing)
        await rewriter.rewrite(working_copy, "com.acme.app", signing=signing)

        debug = (working_copy / "ios/Flutter/Debug.xcconfig").read_text()
        assert debug.count('#include "../config/build.xcconfig"') == 1

    async def test_signing_not_reported_when_team_lands_nowhere(self, working_copy):
        pbxproj_path = working_copy / PBXPROJ
        pbxproj_path.write_text(
            "\n".join(line for line in pbxproj_path.read_text().splitlines() if "DEVELOPMENT_TEAM" not in line)
        )
        for name in ("Debug", "Release"):
            (working_copy / f"ios/Flutter/{name}.xcconfig").unlink()
        rewriter = IosIdentityRewriter(Path("ios/config/build.xcconfig"))

        output = await rewriter.rewrite(working_copy, "com.acme.app", signing=IosSigning(team_id="ABCDE12345"))

        assert not output.signing_configured
        assert (working_copy / "ios/config/build.xcconfig").is_file()

    async def test_missing_plist(self, working_copy):
        (working_copy / PLIST).unlink()

        with pytest.raises(StructuralNotFoundError):
            await IosIdentityRewriter(Path("ios/config/build.xcconfig")).rewrite(working_copy, "com.acme.app")


@pytest.mark.asyncio
class TestDescriptors:
    """Tests for pubspec version stamping and runtime config."""

    async def test_stamp_name_and_code(self, working_copy):
        version = await VersionStamper().stamp(working_copy, "2.3.4", 12, VersionFormat.NAME_AND_CODE)

        assert version == "2.3.4+12"
        assert "version: 2.3.4+12\n" in (working_copy / "pubspec.yaml").read_text()

    async def test_stamp_keeps_existing_build_number(self, working_copy):
        version = await VersionStamper().stamp(working_copy, "2.3.4", None, VersionFormat.NAME_AND_CODE)

        assert version == "2.3.4+7"

    async def test_stamp_name_only(self, working_copy):
        version = await VersionStamper().stamp(working_copy, "2.3.4", 12, VersionFormat.NAME_ONLY)

        assert version == "2.3.4"

    async def test_stamp_without_version_line(self, working_copy):
        (working_copy / "pubspec.yaml").write_text("name: template_app\n")

        with pytest.raises(VersionLineNotFoundError):
            await VersionStamper().stamp(working_copy, "2.3.4", 1, VersionFormat.NAME_AND_CODE)

    async def test_runtime_config(self, working_copy, identity):
        applied = await RuntimeConfigRewriter().rewrite(working_copy, identity)

        assert applied == ["OFFLINE_CATEGORY_ID", "API_URL", "PRODUCT_ID"]
        assert (working_copy / "lib/config.dart").read_text() == (
            "const int OFFLINE_CATEGORY_ID = 42;\n"
            "const String API_URL = 'https://api.acme.test/v1';\n"
            "const String PRODUCT_ID = 'com.acme.app';\n"
        )

    async def test_missing_runtime_config_is_skipped(self, working_copy, identity):
        (working_copy / "lib/config.dart").unlink()

        assert await RuntimeConfigRewriter().rewrite(working_copy, identity) == []

    async def test_category_id_declared_as_string(self, working_copy, identity):
        (working_copy / "lib/config.dart").write_text(
            "const String OFFLINE_CATEGORY_ID = '2';\n"
            "const String API_URL = 'https://api.example.com';\n"
        )

        applied = await RuntimeConfigRewriter().rewrite(working_copy, identity)

        assert applied == ["OFFLINE_CATEGORY_ID", "API_URL"]
        assert (working_copy / "lib/config.dart").read_text() == (
            "const String OFFLINE_CATEGORY_ID = '42';\n"
            "const String API_URL = 'https://api.acme.test/v1';\n"
        )

    async def test_env_file_is_created(self, working_copy, identity):
        await RuntimeConfigRewriter().rewrite(working_copy, identity)

        assert dotenv_values(working_copy / ".env") == {
            "OFFLINE_CATEGORY_ID": "42",
            "API_URL": "https://api.acme.test/v1",
        }

    async def test_env_file_keeps_other_entries(self, working_copy, identity):
        (working_copy / ".env").write_text("SENTRY_DSN=abc\nAPI_URL=https://old.example.com\n")

        await RuntimeConfigRewriter().write_env(working_copy, identity)

        assert dotenv_values(working_copy / ".env") == {
            "SENTRY_DSN": "abc",
            "API_URL": "https://api.acme.test/v1",
            "OFFLINE_CATEGORY_ID": "42",
        }


@pytest.mark.asyncio
class TestIdentityRewriteService:
    """Tests for the combined identity rewrite."""

    async def test_android_only_leaves_ios_untouched(self, working_copy, identity):
        original_plist = (working_copy / PLIST).read_text()
        request = RebrandRequest(template=working_copy, identity=identity)

        output = await IdentityRewriteService(PathsConfig()).rewrite(working_copy, request)

        assert output.android is not None
        assert output.ios is None
        assert (working_copy / PLIST).read_text() == original_plist

    async def test_debug_does_not_stamp_version(self, working_copy, identity):
        request = RebrandRequest(
            template=working_copy,
            identity=identity.model_copy(update={"version_name": "9.9.9"}),
        )

        output = await IdentityRewriteService(PathsConfig()).rewrite(working_copy, request)

        assert output.version is None
        assert "version: 1.0.0+7" in (working_copy / "pubspec.yaml").read_text()

    async def test_ios_release_uses_name_only(self, working_copy, identity):
        request = RebrandRequest(
            template=working_copy,
            identity=identity.model_copy(update={"version_name": "3.0.0"}),
            mode=BuildMode.RELEASE,
            platforms={Platform.IOS},
        )

        output = await IdentityRewriteService(PathsConfig()).rewrite(working_copy, request)

        assert output.version == "3.0.0"
        assert output.android is None
