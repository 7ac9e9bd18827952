"""End-to-end tests for the rebrand pipeline with a scripted toolchain."""

import pytest
from conftest import FakeRunner, simulate_toolchain
from prefect.testing.utilities import prefect_test_harness

from rebrandkit.core.exceptions import BuildToolFailedError, CredentialToolUnavailableError
from rebrandkit.core.types import StageName, StageStatus
from rebrandkit.models.project import BuildMode, Platform
from rebrandkit.orchestration import RebrandPipeline, rebrand_flow
from rebrandkit.orchestration import pipeline as pipeline_module


def _never_prompted():
    raise AssertionError("credential prompt must not be called")


def _pipeline(config, runner, credential_prompt=_never_prompted, confirm=lambda message: True):
    return RebrandPipeline(config, confirm=confirm, credential_prompt=credential_prompt, runner=runner)


@pytest.mark.asyncio
class TestRebrandPipeline:
    """Tests for the full stage sequence."""

    async def test_android_debug_run(self, config, template_dir, make_request):
        runner = FakeRunner(on_run=simulate_toolchain)

        result = await _pipeline(config, runner).run(make_request())

        assert result.success
        output_dir = config.paths.output_root / "com_acme_app"
        assert result.output_directory == output_dir
        assert [p.name for p in output_dir.iterdir()] == ["app-debug.apk"]
        assert [call.argv[1:] for call in runner.calls] == [["build", "apk", "--debug"]]

        stages = {stage.stage_name: stage.status for stage in result.stages}
        assert stages[StageName.PREPARE_CREDENTIALS] == StageStatus.SKIPPED
        assert stages[StageName.BUILD] == StageStatus.COMPLETED

        working_copy = config.paths.workspace_root / "com_acme_app"
        manifest = (working_copy / "android/app/src/main/AndroidManifest.xml").read_text()
        assert 'package="com.acme.app"' in manifest
        assert 'package="com.example.template"' in (template_dir / "android/app/src/main/AndroidManifest.xml").read_text()

    async def test_release_without_keytool_stops_before_building(
        self, config, make_request, no_host_tools
    ):
        runner = FakeRunner(on_run=simulate_toolchain)
        prompts = []
        config = config.model_copy(update={"tools": config.tools.model_copy(update={"keytool_path": None})})

        with pytest.raises(CredentialToolUnavailableError):
            await _pipeline(config, runner, credential_prompt=lambda: prompts.append(1)).run(
                make_request(mode=BuildMode.RELEASE)
            )

        assert runner.calls == []
        assert prompts == []
        assert not (config.paths.output_root / "com_acme_app").exists()

    async def test_release_generates_keystore_and_collects(self, config, make_request, signing_credentials):
        runner = FakeRunner(on_run=simulate_toolchain)
        request = make_request(mode=BuildMode.RELEASE, version_name="2.0.0", version_code=5)

        result = await _pipeline(config, runner, credential_prompt=lambda: signing_credentials).run(request)

        assert [call.tool for call in runner.calls] == ["keytool", "flutter", "flutter"]
        assert sorted(a.destination_path.name for a in result.artifacts) == ["app-release.aab", "app-release.apk"]
        working_copy = result.working_copy
        assert (working_copy / "android/app/upload-keystore.jks").is_file()
        assert "version: 2.0.0+5" in (working_copy / "pubspec.yaml").read_text()
        assert (config.paths.credentials_root / "template_app" / "key.properties").is_file()

    async def test_build_failure_marks_stage(self, config, make_request):
        runner = FakeRunner(exit_codes={1: 1})
        pipeline = _pipeline(config, runner)
        request = make_request()
        result = pipeline.new_result(request)

        with pytest.raises(BuildToolFailedError):
            await pipeline.execute(request, result)

        assert result.failed_stage == StageName.BUILD.value
        assert result.stages[-1].status == StageStatus.FAILED
        assert not (config.paths.output_root / "com_acme_app").exists()

    async def test_missing_artifact_is_a_warning(self, config, make_request):
        runner = FakeRunner(on_run=simulate_toolchain)

        result = await _pipeline(config, runner).run(
            make_request(platforms={Platform.ANDROID, Platform.IOS})
        )

        assert result.success
        assert [a.destination_path.name for a in result.artifacts] == ["app-debug.apk"]
        assert len(result.warnings) == 1
        assert "Runner.app" in result.warnings[0]


@pytest.fixture(scope="module")
def prefect_harness():
    """Run flows against a throwaway Prefect backend."""
    with prefect_test_harness():
        yield


@pytest.mark.asyncio
class TestRebrandFlow:
    """Tests for the Prefect flow wrapper."""

    async def test_failed_build_is_reported_on_the_result(
        self, prefect_harness, monkeypatch, config, make_request
    ):
        config.tools.flutter_path.write_text("#!/bin/sh\nexit 3\n")
        monkeypatch.setattr(pipeline_module, "get_config", lambda: config)

        result = await rebrand_flow(make_request())

        assert not result.success
        assert result.failed_stage == StageName.BUILD.value
        assert result.error
        assert result.completed_at is not None
        assert not (config.paths.output_root / "com_acme_app").exists()

    async def test_successful_run(self, prefect_harness, monkeypatch, config, make_request):
        monkeypatch.setattr(pipeline_module, "get_config", lambda: config)

        result = await rebrand_flow(make_request())

        assert result.success
        assert result.error is None
        assert result.working_copy == config.paths.workspace_root / "com_acme_app"
