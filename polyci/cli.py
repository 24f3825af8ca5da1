"""CLI entry points.

Each command is installed both as a standalone console script and as a
subcommand of the `polyci` group:

    polyci-detect --format json          polyci detect --format json
    polyci-setup                         polyci setup
    polyci-test --coverage --ci          polyci test --coverage --ci
    polyci-lint --fix                    polyci lint --fix
    polyci-build --debug                 polyci build --debug
    polyci-sync-mirror --full            polyci sync-mirror --full
    polyci-verify-mirror --report        polyci verify-mirror --report

Flags override the matching environment variables. Unknown flags are
ignored so pipelines can pass a shared argument list to every command.
Logs go to stderr; machine-readable output and summaries go to stdout.
"""

from __future__ import annotations

import logging

import click

from polyci import __version__
from polyci.core.config import Settings, get_settings
from polyci.core.logging import configure_structlog
from polyci.detector import detect
from polyci.detector.orchestrator import format_env, format_text
from polyci.dispatch import (
    BuildDispatcher,
    LintDispatcher,
    SetupDispatcher,
    TestDispatcher,
    load_classification,
)
from polyci.exceptions import ConfigurationError, GitCommandError
from polyci.mirror import GitClient, MirrorSync, MirrorVerifier, SyncMode, render_summary, run_sync, write_report

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {
    "ignore_unknown_options": True,
    "allow_extra_args": True,
    "help_option_names": ["-h", "--help"],
}

OUTPUT_FORMATS = ("text", "json", "legacy-json", "env")


def _load_settings(ctx: click.Context, **overrides) -> Settings:
    """Resolve settings and configure logging, exiting 1 on bad config."""
    try:
        settings = get_settings(**overrides)
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(1)
    configure_structlog(debug=settings.verbose, level=settings.log_level, fmt=settings.log_format)
    if ctx.args:
        logger.debug("Ignoring unknown arguments: %s", " ".join(ctx.args))
    return settings


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------

@click.command("detect", context_settings=CONTEXT_SETTINGS)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(OUTPUT_FORMATS),
    default="text",
    show_default=True,
    help="Output format. 'env' prints export lines for eval.",
)
@click.pass_context
def detect_command(ctx: click.Context, output_format: str) -> None:
    """Detect languages, package managers, test frameworks and build systems."""
    settings = _load_settings(ctx)
    classification = detect(settings.root)

    if output_format == "json":
        click.echo(classification.to_json())
    elif output_format == "legacy-json":
        click.echo(classification.to_legacy_json())
    elif output_format == "env":
        click.echo(format_env(classification))
    else:
        click.echo(format_text(classification))


# ---------------------------------------------------------------------------
# Dispatchers
# ---------------------------------------------------------------------------

@click.command("setup", context_settings=CONTEXT_SETTINGS)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def setup_command(ctx: click.Context, verbose: bool) -> None:
    """Install project dependencies for every detected ecosystem."""
    settings = _load_settings(ctx, verbose=verbose or None)
    logger.info("Starting dependency setup in: %s", settings.root)
    dispatcher = SetupDispatcher(settings.root, load_classification(settings), settings)
    summary = dispatcher.run()
    ctx.exit(summary.exit_code())


@click.command("test", context_settings=CONTEXT_SETTINGS)
@click.option("--coverage", is_flag=True, help="Collect coverage where supported")
@click.option("--verbose", "-v", is_flag=True, help="Verbose test output")
@click.option("--ci", is_flag=True, help="CI mode")
@click.pass_context
def test_command(ctx: click.Context, coverage: bool, verbose: bool, ci: bool) -> None:
    """Run the test suite of every detected language."""
    settings = _load_settings(
        ctx, coverage=coverage or None, verbose=verbose or None, ci=ci or None
    )
    logger.info("Starting test run in: %s", settings.root)
    dispatcher = TestDispatcher(settings.root, load_classification(settings), settings)
    summary = dispatcher.run()
    click.echo(summary.render(dispatcher.unit))
    ctx.exit(TestDispatcher.exit_code(summary))


@click.command("lint", context_settings=CONTEXT_SETTINGS)
@click.option("--fix", is_flag=True, help="Apply fixes instead of reporting")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def lint_command(ctx: click.Context, fix: bool, verbose: bool) -> None:
    """Run every applicable linter for the detected languages."""
    settings = _load_settings(ctx, fix=fix or None, verbose=verbose or None)
    logger.info("Starting lint run in: %s", settings.root)
    dispatcher = LintDispatcher(settings.root, load_classification(settings), settings)
    summary = dispatcher.run()
    click.echo(summary.render(dispatcher.unit))
    ctx.exit(summary.exit_code())


@click.command("build", context_settings=CONTEXT_SETTINGS)
@click.option("--release", is_flag=True, help="Release build (default)")
@click.option("--debug", is_flag=True, help="Debug build")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def build_command(ctx: click.Context, release: bool, debug: bool, verbose: bool) -> None:
    """Build every detected project type, plus a Docker image if present."""
    build_mode = "debug" if debug else ("release" if release else None)
    settings = _load_settings(ctx, build_mode=build_mode, verbose=verbose or None)
    logger.info("Starting build in: %s", settings.root)
    dispatcher = BuildDispatcher(settings.root, load_classification(settings), settings)
    summary = dispatcher.run()
    ctx.exit(summary.exit_code())


# ---------------------------------------------------------------------------
# Mirror
# ---------------------------------------------------------------------------

@click.command("sync-mirror", context_settings=CONTEXT_SETTINGS)
@click.option("--mirror-url", default=None, help="URL of the mirror remote")
@click.option("--source", default=None, help="Source remote name")
@click.option("--mirror", default=None, help="Mirror remote name")
@click.option("--dry-run", is_flag=True, help="Log pushes instead of running them")
@click.option("--full", "mode", flag_value=SyncMode.FULL.value, help="Sync all branches and tags")
@click.option(
    "--push", "mode", flag_value=SyncMode.PUSH.value, default=SyncMode.PUSH.value,
    help="Sync only the ref in GITHUB_REF (default)",
)
@click.pass_context
def sync_mirror_command(
    ctx: click.Context,
    mirror_url: str | None,
    source: str | None,
    mirror: str | None,
    dry_run: bool,
    mode: str,
) -> None:
    """Push refs from the source remote to the mirror remote."""
    settings = _load_settings(
        ctx,
        mirror_url=mirror_url,
        source_remote=source,
        mirror_remote=mirror,
        dry_run=dry_run or None,
    )
    sync = MirrorSync(
        GitClient(settings.root),
        source_remote=settings.source_remote,
        mirror_remote=settings.mirror_remote,
        dry_run=settings.dry_run,
    )
    try:
        result = run_sync(
            sync,
            SyncMode(mode),
            mirror_url=settings.mirror_url,
            ref=settings.github_ref,
            sha=settings.github_sha,
        )
    except (ConfigurationError, GitCommandError) as exc:
        logger.error("%s", exc)
        ctx.exit(1)
    ctx.exit(result.exit_code)


@click.command("verify-mirror", context_settings=CONTEXT_SETTINGS)
@click.option("--source", default=None, help="Source remote name")
@click.option("--mirror", default=None, help="Mirror remote name")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--report", is_flag=True, help="Write mirror-verification-report.txt")
@click.pass_context
def verify_mirror_command(
    ctx: click.Context,
    source: str | None,
    mirror: str | None,
    verbose: bool,
    report: bool,
) -> None:
    """Check that the mirror remote matches the source remote."""
    settings = _load_settings(
        ctx, source_remote=source, mirror_remote=mirror, verbose=verbose or None
    )
    git = GitClient(settings.root)
    result = MirrorVerifier(git, settings.source_remote, settings.mirror_remote).verify()
    click.echo(render_summary(result))
    if report:
        write_report(result, git, settings.root)
    ctx.exit(result.exit_code)


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="polyci")
def main() -> None:
    """polyci: detect a project's toolchain and drive it from CI."""


for _command in (
    detect_command,
    setup_command,
    test_command,
    lint_command,
    build_command,
    sync_mirror_command,
    verify_mirror_command,
):
    main.add_command(_command)


if __name__ == "__main__":
    main()
