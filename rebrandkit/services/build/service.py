"""
Build Orchestrator.

Turns (platform, mode) into an ordered list of native toolchain commands and
runs them one after another in the working copy. The first failing command
stops the run; nothing after it is spawned.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from ...core.config import BuildConfig, ToolsConfig
from ...core.exceptions import BuildToolFailedError
from ...core.logging import command_sink, get_logger
from ...core.process import CommandRunner, format_command
from ...core.tools import find_tool
from ...models.project import BuildMode, Platform

logger = get_logger(__name__)

IOS_DIR = Path("ios")
XCARCHIVE_NAME = "Runner.xcarchive"


class BuildCommand(BaseModel):
    """A single native toolchain invocation."""

    platform: Platform
    tool: str = Field(description="Executable name, resolved on the host before spawning")
    args: list[str] = Field(default_factory=list)
    cwd: Path = Field(default=Path("."), description="Working directory relative to the working copy")

    def argv(self, executable: Path | str) -> list[str]:
        return [str(executable), *self.args]

    @property
    def display(self) -> str:
        return format_command([self.tool, *self.args])


class BuildOutput(BaseModel):
    """Commands that ran to a zero exit status."""

    commands: list[BuildCommand] = Field(default_factory=list)


def _flutter(platform: Platform, *args: str) -> BuildCommand:
    return BuildCommand(platform=platform, tool="flutter", args=list(args))


def _android_plan(mode: BuildMode) -> list[BuildCommand]:
    if mode == BuildMode.DEBUG:
        return [_flutter(Platform.ANDROID, "build", "apk", "--debug")]
    return [
        _flutter(Platform.ANDROID, "build", "apk", "--release"),
        _flutter(Platform.ANDROID, "build", "appbundle", "--release"),
    ]


def _ios_plan(mode: BuildMode) -> list[BuildCommand]:
    if mode == BuildMode.DEBUG:
        return [_flutter(Platform.IOS, "build", "ios", "--debug", "--simulator")]
    return [
        BuildCommand(platform=Platform.IOS, tool="pod", args=["install"], cwd=IOS_DIR),
        _flutter(Platform.IOS, "build", "ios", "--release", "--no-codesign"),
        BuildCommand(
            platform=Platform.IOS,
            tool="xcodebuild",
            args=[
                "-workspace", "Runner.xcworkspace",
                "-scheme", "Runner",
                "-sdk", "iphoneos",
                "-configuration", BuildMode.RELEASE.value,
                "archive",
                "-archivePath", XCARCHIVE_NAME,
                "-allowProvisioningUpdates",
            ],
            cwd=IOS_DIR,
        ),
    ]


class BuildOrchestrator:
    """Drives flutter, pod and xcodebuild for the enabled platforms."""

    def __init__(
        self,
        tools: ToolsConfig,
        build: BuildConfig,
        runner: CommandRunner | None = None,
    ) -> None:
        self.tools = tools
        self.build_config = build
        self.runner = runner or CommandRunner()

    def plan(self, platform: Platform, mode: BuildMode) -> list[BuildCommand]:
        """Ordered commands for one platform and mode."""
        return _android_plan(mode) if platform == Platform.ANDROID else _ios_plan(mode)

    def plan_run(self, mode: BuildMode, platforms: list[Platform]) -> list[BuildCommand]:
        """Combined commands for a run over several platforms.

        `flutter clean` wipes the shared build directory, so it runs at most
        once, before the first platform builds anything.
        """
        commands = [command for platform in platforms for command in self.plan(platform, mode)]
        if commands and mode == BuildMode.RELEASE and self.build_config.clean_first:
            commands.insert(0, _flutter(platforms[0], "clean"))
        return commands

    def resolve(self, commands: list[BuildCommand]) -> dict[str, Path]:
        """Resolve every executable the commands need.

        Raises:
            ToolUnavailableError: For the first tool that cannot be found
        """
        resolved: dict[str, Path] = {}
        for command in commands:
            if command.tool not in resolved:
                resolved[command.tool] = find_tool(command.tool, self.tools)
        return resolved

    async def build(
        self, working_copy: Path, mode: BuildMode, platforms: list[Platform]
    ) -> BuildOutput:
        """Run the build plans of all enabled platforms in order.

        Args:
            working_copy: Root of the rebranded working copy
            mode: Debug or Release
            platforms: Enabled platforms, Android first

        Returns:
            BuildOutput listing the commands that completed

        Raises:
            ToolUnavailableError: If any planned tool is missing; nothing is spawned
            BuildToolFailedError: On the first non-zero exit
        """
        commands = self.plan_run(mode, platforms)
        executables = self.resolve(commands)
        logger.info("Build plan ready", mode=mode.value, commands=[c.display for c in commands])

        output = BuildOutput()
        for index, command in enumerate(commands, start=1):
            logger.info(
                "Running build step",
                step=f"{index}/{len(commands)}",
                platform=command.platform.value,
                command=command.display,
            )
            exit_code = await self.runner.run(
                command.argv(executables[command.tool]),
                cwd=working_copy / command.cwd,
                sink=command_sink(command.tool, command.platform.value),
            )
            if exit_code != 0:
                logger.error(
                    "Build step failed",
                    platform=command.platform.value,
                    command=command.display,
                    exit_code=exit_code,
                )
                raise BuildToolFailedError(
                    message="Build command failed",
                    platform=command.platform.value,
                    command=command.display,
                    exit_code=exit_code,
                )
            output.commands.append(command)

        logger.info("Build finished", mode=mode.value, steps=len(output.commands))
        return output
