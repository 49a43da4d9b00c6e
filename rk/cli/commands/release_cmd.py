from __future__ import annotations

from pathlib import Path

import typer

from rk.cli.commands._helpers import exit_on_release_error
from rk.cli.context import build_context
from rk.core.result import Err
from rk.release.model import BumpLevel, RunOutcome


_CONFIG_HELP = "Config file (default: $CONFIG_FILE_PATH or release-config.json)"
_REPO_HELP = "Repository root (default: current directory)"


def _report(outcome: RunOutcome) -> str:
    match outcome.status:
        case "released":
            assert outcome.decision is not None
            return f"released {outcome.decision.tag}"
        case "dry_run":
            assert outcome.decision is not None
            return f"would release {outcome.decision.tag}"
        case "no_bump":
            return "nothing to release (no version bump)"
        case "no_commits":
            return "nothing to release (no new commits)"
        case "loop_prevented":
            return "nothing to release (last commit is a release commit)"


def release(
    config_file: Path | None = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    repo: Path | None = typer.Option(None, "--repo", help=_REPO_HELP),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Compute version and notes, change nothing"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Tag, commit and publish the next release from commits since the last tag."""
    ctx = build_context(repo=repo, config_file=config_file, verbose=verbose)
    result = ctx.orchestrator().run(dry_run=dry_run)
    if isinstance(result, Err):
        exit_on_release_error(result.error, ctx.console)

    ctx.console.debug(_report(result.value))


def next_version(
    config_file: Path | None = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    repo: Path | None = typer.Option(None, "--repo", help=_REPO_HELP),
) -> None:
    """Print the tag the next release would get."""
    ctx = build_context(repo=repo, config_file=config_file, quiet_stdout=True)
    decided = ctx.orchestrator().decide()
    if isinstance(decided, Err):
        exit_on_release_error(decided.error, ctx.console)

    decision = decided.value
    if decision is None:
        ctx.console.info("No new commits since last tag.")
        return
    if decision.bump == BumpLevel.NONE:
        ctx.console.info("No commit requires a version bump.")
        return
    typer.echo(decision.tag)


def notes(
    config_file: Path | None = typer.Option(None, "--config", "-c", help=_CONFIG_HELP),
    repo: Path | None = typer.Option(None, "--repo", help=_REPO_HELP),
) -> None:
    """Print the release notes for commits since the last tag."""
    ctx = build_context(repo=repo, config_file=config_file, quiet_stdout=True)
    decided = ctx.orchestrator().decide()
    if isinstance(decided, Err):
        exit_on_release_error(decided.error, ctx.console)

    decision = decided.value
    if decision is None:
        ctx.console.info("No new commits since last tag.")
        return
    if decision.notes:
        typer.echo(decision.notes)
