from __future__ import annotations

import shutil
from pathlib import Path

from rk.core.result import Err, Ok, Result
from rk.platform.process import ProcessError
from rk.platform.process import run as run_process
from rk.release.errors import ReleaseError

_GH_TIMEOUT_SECONDS = 60.0

_NOT_FOUND_MARKERS = ("release not found", "not found")


def _hosting_error(message: str, error: ProcessError) -> ReleaseError:
    return ReleaseError(kind="hosting_failed", message=message, hint=error.detail)


class GitHubHosting:
    """Hosting gateway backed by the GitHub CLI (``gh``).

    Authentication is left to ``gh`` itself (``GH_TOKEN`` in CI).
    """

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    def tool_available(self) -> bool:
        return shutil.which("gh") is not None

    def create_release(self, tag: str, title: str, body: str) -> Result[None, ReleaseError]:
        result = self._gh(["release", "create", tag, "--title", title, "--notes", body])
        if isinstance(result, Err):
            return Err(_hosting_error(f"failed to create release {tag}", result.error))
        return Ok(None)

    def delete_release(self, name: str) -> Result[None, ReleaseError]:
        result = self._gh(["release", "delete", name, "-y"])
        if isinstance(result, Err):
            text = f"{result.error.stderr}\n{result.error.stdout}".lower()
            if any(marker in text for marker in _NOT_FOUND_MARKERS):
                return Ok(None)
            return Err(_hosting_error(f"failed to delete release {name}", result.error))
        return Ok(None)

    def create_floating_release(
        self,
        name: str,
        title: str,
        body: str,
        *,
        mark_as_latest: bool = False,
    ) -> Result[None, ReleaseError]:
        latest = "true" if mark_as_latest else "false"
        result = self._gh(
            ["release", "create", name, "--title", title, "--notes", body, f"--latest={latest}"]
        )
        if isinstance(result, Err):
            return Err(_hosting_error(f"failed to create release {name}", result.error))
        return Ok(None)

    def _gh(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(["gh", *args], cwd=self.repo_root, timeout=_GH_TIMEOUT_SECONDS)
