from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

import typer

from rk.cli.commands._helpers import exit_on_release_error
from rk.core.errors import ErrorCode
from rk.core.result import Err
from rk.git.repository import Repository
from rk.output.console import ConsoleProtocol, RichConsole
from rk.release.config import ReleaseConfig, load_config, resolve_config_path
from rk.release.gateways import FileUpdater, HostingGateway, VcsGateway
from rk.release.gh import GitHubHosting
from rk.release.orchestrator import ReleaseOrchestrator
from rk.release.updaters import VersionFileUpdater


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: ReleaseConfig
    console: ConsoleProtocol
    vcs: VcsGateway
    hosting: HostingGateway
    updater: FileUpdater

    def orchestrator(self) -> ReleaseOrchestrator:
        return ReleaseOrchestrator(
            vcs=self.vcs,
            hosting=self.hosting,
            updater=self.updater,
            config=self.config,
            console=self.console,
            root=self.root,
        )


def debug_enabled() -> bool:
    return os.environ.get("DEBUG", "").strip().lower() in ("1", "true", "yes")


def build_context(
    *,
    repo: Path | None,
    config_file: Path | None,
    verbose: bool = False,
    quiet_stdout: bool = False,
) -> CLIContext:
    console = RichConsole(verbose=verbose or debug_enabled(), stderr=quiet_stdout)

    if shutil.which("git") is None:
        console.error("git is not installed")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    try:
        root = (repo or Path.cwd()).expanduser().resolve()
    except OSError as e:
        console.error(f"invalid --repo: {e}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    repository = Repository(root)
    if not repository.exists():
        console.error(f"{root} is not a git repository")
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    config_path = resolve_config_path(root, config_file)
    loaded = load_config(config_path)
    if isinstance(loaded, Err):
        exit_on_release_error(loaded.error.as_release_error(), console)

    for warning in loaded.value.warnings:
        console.warning(warning)
    if loaded.value.path is not None:
        console.debug(f"Loaded configuration from {loaded.value.path}")

    return CLIContext(
        root=root,
        config=loaded.value.config,
        console=console,
        vcs=repository,
        hosting=GitHubHosting(root),
        updater=VersionFileUpdater(),
    )
