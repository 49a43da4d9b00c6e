"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from rk.core.errors import ErrorCode
from rk.output.console import ConsoleProtocol
from rk.release.errors import ReleaseError, ReleaseErrorKind

_EXIT_CODES: dict[ReleaseErrorKind, ErrorCode] = {
    "config_invalid": ErrorCode.USER_ERROR,
    "gh_missing": ErrorCode.ENV_ERROR,
    "git_failed": ErrorCode.VCS_ERROR,
    "tag_exists": ErrorCode.VCS_ERROR,
    "hosting_failed": ErrorCode.NETWORK_ERROR,
    "file_update_failed": ErrorCode.IO_ERROR,
}


def exit_code_for(error: ReleaseError) -> ErrorCode:
    return _EXIT_CODES.get(error.kind, ErrorCode.USER_ERROR)


def exit_on_release_error(error: ReleaseError, console: ConsoleProtocol) -> NoReturn:
    """Report a failed run and exit with the code for its error kind."""
    console.error(error.pretty())
    raise typer.Exit(code=int(exit_code_for(error)))
