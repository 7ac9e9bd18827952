"""
RebrandKit CLI.

Command-line interface for rebranding a template app and building it.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .core.config import get_config
from .core.exceptions import ValidationError
from .core.logging import setup_logging
from .models.project import (
    BUNDLE_ID_RULE,
    BuildMode,
    IosSigning,
    Platform,
    ProjectIdentity,
    RebrandRequest,
    convert_to_folder_name,
    is_valid_bundle_id,
)

app = typer.Typer(
    name="rebrandkit",
    help="Rebrand a template Flutter app and build installable artifacts",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        from . import __version__
        console.print(f"RebrandKit v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """RebrandKit: template Flutter app to shippable builds."""
    pass


@app.command()
def run(
    template: str = typer.Argument(
        ...,
        help="Template project: a path, or a folder name under the templates root",
    ),
    bundle_id: str = typer.Option(
        ...,
        "--bundle-id",
        "-b",
        prompt="Bundle ID (e.g. com.example.app)",
        help="New bundle identifier / application id",
    ),
    display_name: str = typer.Option(
        ...,
        "--name",
        "-n",
        prompt="App display name",
        help="Human-readable application name",
    ),
    category_id: int = typer.Option(
        ...,
        "--category-id",
        prompt="Offline category ID",
        help="OFFLINE_CATEGORY_ID written to lib/config.dart",
    ),
    api_url: str = typer.Option(
        ...,
        "--api-url",
        prompt="API URL",
        help="API_URL written to lib/config.dart",
    ),
    mode: BuildMode = typer.Option(
        BuildMode.DEBUG,
        "--mode",
        "-m",
        case_sensitive=False,
        help="Build mode",
    ),
    android: bool = typer.Option(True, "--android/--no-android", help="Build for Android"),
    ios: bool = typer.Option(False, "--ios/--no-ios", help="Build for iOS"),
    team_id: Optional[str] = typer.Option(
        None,
        "--team-id",
        help="Apple Development Team ID for automatic signing",
    ),
    version_name: Optional[str] = typer.Option(
        None,
        "--version-name",
        help="Version name for release builds (e.g. 1.2.3)",
    ),
    version_code: Optional[int] = typer.Option(
        None,
        "--version-code",
        help="Build number for release builds",
    ),
    product_id: Optional[str] = typer.Option(
        None,
        "--product-id",
        help="PRODUCT_ID written to lib/config.dart (defaults to the bundle ID)",
    ),
    ios_target: Optional[str] = typer.Option(
        None,
        "--ios-target",
        help="iOS deployment target (e.g. 13.0)",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Replace an existing working copy without asking",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """Rebrand a template and build it.

    Copies the template, rewrites its identity, regenerates icons, prepares
    signing credentials for Android release builds, runs the native builds
    and collects the artifacts into the output folder.
    """
    config = get_config()
    if verbose:
        config.log_level = "DEBUG"
    setup_logging(config)

    platforms = {p for p, enabled in ((Platform.ANDROID, android), (Platform.IOS, ios)) if enabled}
    try:
        request = RebrandRequest(
            template=Path(template),
            identity=ProjectIdentity(
                bundle_id=bundle_id,
                display_name=display_name,
                offline_category_id=category_id,
                api_url=api_url,
                version_name=version_name,
                version_code=version_code,
                product_id=product_id,
            ),
            mode=mode,
            platforms=platforms,
            ios_signing=IosSigning(team_id=team_id) if team_id else None,
            ios_deployment_target=ios_target,
        )
    except PydanticValidationError as e:
        console.print("[bold red]Invalid request:[/bold red]")
        for detail in e.errors():
            error = ValidationError(
                message=detail["msg"],
                field_name=".".join(str(part) for part in detail["loc"]),
                actual_value=detail.get("input"),
            )
            console.print(f"  • {error}")
        raise typer.Exit(1)

    console.print(Panel.fit(
        "[bold blue]RebrandKit[/bold blue]\n"
        "Template → Rebranded App → Shippable Builds",
        border_style="blue",
    ))

    console.print(f"\n[bold]Template:[/bold] {template}")
    console.print(f"[bold]Bundle ID:[/bold] {bundle_id}")
    console.print(f"[bold]Name:[/bold] {display_name}")
    console.print(f"[bold]Mode:[/bold] {mode.value}")
    console.print(f"[bold]Platforms:[/bold] {', '.join(p.value for p in request.ordered_platforms)}\n")

    async def run_async() -> None:
        from .orchestration import run_pipeline

        result = await run_pipeline(request, assume_yes=yes)

        if result.success:
            console.print("\n[bold green]✓ Rebrand completed successfully![/bold green]\n")

            table = Table(title="Pipeline Results")
            table.add_column("Stage", style="cyan")
            table.add_column("Status")
            table.add_column("Duration", justify="right")
            for stage in result.stages:
                table.add_row(stage.stage_name.value, stage.status.value, f"{stage.duration_seconds:.1f}s")
            console.print(table)

            if result.artifacts:
                artifacts = Table(title="Artifacts")
                artifacts.add_column("Platform", style="cyan")
                artifacts.add_column("Kind")
                artifacts.add_column("Path", style="green")
                for artifact in result.artifacts:
                    artifacts.add_row(artifact.platform.value, artifact.kind.value, str(artifact.destination_path))
                console.print(artifacts)

            for warning in result.warnings:
                console.print(f"[yellow]⚠ {warning}[/yellow]")

            console.print(f"\n[bold]Run ID:[/bold] {result.run_id}")
            console.print(f"[bold]Duration:[/bold] {result.duration_seconds:.1f}s")
            console.print(f"[bold]Output folder:[/bold] {result.output_directory}")

        else:
            console.print("\n[bold red]✗ Rebrand failed![/bold red]")
            console.print(f"Error: {result.error}")
            if result.failed_stage:
                console.print(f"Failed at: {result.failed_stage}")
            raise typer.Exit(1)

    asyncio.run(run_async())


@app.command("folder-name")
def folder_name(
    bundle_id: str = typer.Argument(..., help="Bundle identifier, e.g. com.example.app"),
) -> None:
    """Print the output folder name for a bundle ID."""
    if not is_valid_bundle_id(bundle_id):
        error = ValidationError(message=BUNDLE_ID_RULE, field_name="bundle_id", actual_value=bundle_id)
        console.print(f"[bold red]{error}[/bold red]")
        raise typer.Exit(1)
    console.print(convert_to_folder_name(bundle_id))


@app.command()
def config() -> None:
    """Show the effective configuration."""
    cfg = get_config()

    table = Table(title="Current Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Log Level", cfg.log_level)
    table.add_row("Templates Root", str(cfg.paths.templates_root))
    table.add_row("Workspace Root", str(cfg.paths.workspace_root))
    table.add_row("Output Root", str(cfg.paths.output_root))
    table.add_row("Credentials Root", str(cfg.paths.credentials_root))
    for tool in ("flutter", "xcodebuild", "pod", "keytool"):
        configured = cfg.tools.configured(tool)
        table.add_row(f"{tool} Path", str(configured) if configured else "[dim]PATH[/dim]")
    table.add_row("Keystore", f"{cfg.signing.keystore_name} ({cfg.signing.store_type}, {cfg.signing.key_algorithm} {cfg.signing.key_size})")
    table.add_row("Clean Before Release", str(cfg.build.clean_first))
    table.add_row("Icon Source", str(cfg.assets.icon_source) if cfg.assets.icon_source else "icon.png in working copy")

    console.print(table)

    console.print("\n[dim]Configure via environment variables:[/dim]")
    console.print("  REBRAND_LOG_LEVEL, REBRAND_TEMPLATES_ROOT, REBRAND_WORKSPACE_ROOT")
    console.print("  REBRAND_OUTPUT_ROOT, REBRAND_CREDENTIALS_ROOT, REBRAND_CLEAN_FIRST")
    console.print("  REBRAND_FLUTTER_PATH, REBRAND_XCODEBUILD_PATH, REBRAND_POD_PATH, REBRAND_KEYTOOL_PATH")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
