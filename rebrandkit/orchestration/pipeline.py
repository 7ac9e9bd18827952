"""
Main pipeline orchestration for RebrandKit.

Runs the rebrand stages in order against one working copy and wraps the run
in a Prefect flow for the CLI.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from prefect import flow, get_run_logger
from pydantic import BaseModel, Field

from ..core.config import Config, get_config
from ..core.exceptions import PipelineError
from ..core.logging import bind_context, clear_context, get_logger, setup_logging
from ..core.process import CommandRunner
from ..core.types import StageName, StageResult, StageStatus, utcnow
from ..models.artifacts import BuildArtifact
from ..models.project import BuildMode, Platform, RebrandRequest
from ..services.artifacts import ArtifactCollector
from ..services.assets import AssetService
from ..services.build import BuildOrchestrator
from ..services.credentials import CredentialStore
from ..services.credentials.service import CredentialPrompt
from ..services.identity import IdentityRewriteService
from ..services.materializer import MaterializerService
from ..services.materializer.service import ConfirmCallback

logger = get_logger(__name__)


class PipelineResult(BaseModel):
    """Result of a complete pipeline run."""

    run_id: str
    success: bool = False
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: datetime | None = None

    bundle_id: str
    mode: BuildMode
    platforms: list[Platform] = Field(default_factory=list)

    # Outputs
    working_copy: Path | None = None
    output_directory: Path | None = None
    artifacts: list[BuildArtifact] = Field(default_factory=list)
    stages: list[StageResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    # Errors
    error: str | None = None
    failed_stage: str | None = None

    @property
    def duration_seconds(self) -> float:
        if self.completed_at is None:
            return 0.0
        return (self.completed_at - self.started_at).total_seconds()

    def finish(self, error: str | None = None) -> None:
        self.error = error
        self.success = error is None
        self.completed_at = utcnow()


class RebrandPipeline:
    """Rebrand-then-build pipeline for programmatic use.

    Fatal errors propagate to the caller after the failing stage is recorded
    on the result.
    """

    def __init__(
        self,
        config: Config,
        confirm: ConfirmCallback,
        credential_prompt: CredentialPrompt,
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Configuration supplying every filesystem root and tool path
            confirm: Asked before an existing working copy is replaced
            credential_prompt: Collects keystore parameters when one must be generated
            runner: Process runner shared by the credential store and the builder
        """
        self.config = config
        self.credential_prompt = credential_prompt
        runner = runner or CommandRunner()

        self.materializer = MaterializerService(config.paths, confirm)
        self.identity = IdentityRewriteService(config.paths)
        self.assets = AssetService(config.assets)
        self.credentials = CredentialStore(config.paths, config.tools, config.signing, runner)
        self.builder = BuildOrchestrator(config.tools, config.build, runner)
        self.collector = ArtifactCollector(config.paths)

    def new_result(self, request: RebrandRequest) -> PipelineResult:
        return PipelineResult(
            run_id=str(uuid.uuid4())[:8],
            bundle_id=request.identity.bundle_id,
            mode=request.mode,
            platforms=request.ordered_platforms,
        )

    @contextmanager
    def _stage(self, result: PipelineResult, name: StageName) -> Iterator[StageResult]:
        stage = StageResult(stage_name=name)
        result.stages.append(stage)
        bind_context(stage=name.value)
        logger.info("Stage started")
        try:
            yield stage
        except Exception as e:
            stage.mark_failed(str(e))
            result.failed_stage = name.value
            logger.error("Stage failed", error=str(e), error_type=type(e).__name__)
            raise
        if stage.status == StageStatus.RUNNING:
            stage.mark_completed()
        result.warnings.extend(stage.warnings)
        logger.info("Stage finished", status=stage.status.value, duration=round(stage.duration_seconds, 2))

    async def run(self, request: RebrandRequest) -> PipelineResult:
        """Run every stage for one request.

        Args:
            request: Identity, mode and platforms of this run

        Returns:
            PipelineResult of a successful run

        Raises:
            RebrandError: Whatever the failing stage raised
        """
        return await self.execute(request, self.new_result(request))

    async def execute(self, request: RebrandRequest, result: PipelineResult) -> PipelineResult:
        """Run every stage, recording progress on a caller-owned result."""
        identity = request.identity
        platforms = request.ordered_platforms
        bind_context(run_id=result.run_id, bundle_id=identity.bundle_id)
        logger.info(
            "Starting rebrand",
            template=str(request.template),
            mode=request.mode.value,
            platforms=[p.value for p in platforms],
        )

        try:
            with self._stage(result, StageName.MATERIALIZE) as stage:
                template = self.materializer.resolve_template(request.template)
                working_copy = await self.materializer.materialize(template, identity.folder_name)
                result.working_copy = working_copy
                stage.mark_completed(paths=[working_copy])

            with self._stage(result, StageName.REWRITE_IDENTITY) as stage:
                rewrite = await self.identity.rewrite(working_copy, request)
                stage.metadata["version"] = rewrite.version
                stage.metadata["runtime_settings"] = rewrite.runtime_settings
                if rewrite.android is not None:
                    stage.metadata["old_package"] = rewrite.android.old_package
                stage.mark_completed(paths=rewrite.changed_files)

            with self._stage(result, StageName.UPDATE_ASSETS) as stage:
                icons = await self.assets.update_icons(working_copy, request.platforms)
                if icons.source is None:
                    stage.mark_skipped("No source icon")
                else:
                    stage.mark_completed(paths=icons.written)

            with self._stage(result, StageName.PREPARE_CREDENTIALS) as stage:
                if request.is_release and Platform.ANDROID in request.platforms:
                    credentials = await self.credentials.ensure(
                        working_copy, template.name, self.credential_prompt
                    )
                    stage.metadata["generated"] = credentials.generated
                    stage.mark_completed(paths=[credentials.keystore_path, credentials.properties_path])
                else:
                    stage.mark_skipped("Signing credentials are only needed for Android release builds")

            with self._stage(result, StageName.BUILD) as stage:
                build = await self.builder.build(working_copy, request.mode, platforms)
                stage.metadata["commands"] = [command.display for command in build.commands]

            with self._stage(result, StageName.COLLECT_ARTIFACTS) as stage:
                collection = await self.collector.collect(
                    working_copy, identity.folder_name, request.mode, platforms
                )
                result.output_directory = collection.output_dir
                result.artifacts = collection.artifacts
                stage.mark_completed(
                    paths=[artifact.destination_path for artifact in collection.artifacts],
                    warnings=[str(missing) for missing in collection.missing],
                )

            result.finish()
            logger.info(
                "Rebrand completed",
                output_directory=str(result.output_directory),
                artifacts=len(result.artifacts),
                warnings=len(result.warnings),
            )
            return result
        finally:
            clear_context()


@flow(
    name="rebrandkit",
    description="Rebrand a template Flutter app and build it",
    version="1.0.0",
    retries=0,
)
async def rebrand_flow(request: RebrandRequest, assume_yes: bool = False) -> PipelineResult:
    """Execute the complete RebrandKit pipeline.

    Args:
        request: Rebrand request
        assume_yes: Answer the overwrite confirmation with yes

    Returns:
        PipelineResult; a failed run is reported on the result, never raised
    """
    from ..prompts import make_confirm, make_credential_prompt

    run_logger = get_run_logger()
    config = get_config()
    pipeline = RebrandPipeline(
        config,
        confirm=make_confirm(assume_yes),
        credential_prompt=make_credential_prompt(config.signing.default_validity_days),
    )
    result = pipeline.new_result(request)

    run_logger.info(f"Starting RebrandKit pipeline. Run ID: {result.run_id}")
    run_logger.info(f"Template: {request.template}")
    run_logger.info(f"Bundle ID: {request.identity.bundle_id} ({request.mode.value})")

    try:
        await pipeline.execute(request, result)
    except Exception as e:
        error = PipelineError(
            message=str(e),
            stage=result.failed_stage or "",
            pipeline_run_id=result.run_id,
        )
        run_logger.error(str(error))
        result.finish(error=str(e))
        return result

    run_logger.info(f"Pipeline completed successfully in {result.duration_seconds:.1f}s")
    run_logger.info(f"Output directory: {result.output_directory}")
    for warning in result.warnings:
        run_logger.warning(warning)
    return result


async def run_pipeline(request: RebrandRequest, assume_yes: bool = False) -> PipelineResult:
    """Convenience function to run the pipeline with the environment configuration.

    Args:
        request: Rebrand request
        assume_yes: Answer the overwrite confirmation with yes

    Returns:
        PipelineResult of the run
    """
    setup_logging(get_config())
    return await rebrand_flow(request, assume_yes=assume_yes)
