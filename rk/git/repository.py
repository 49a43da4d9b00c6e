"""Git repository abstraction.

``Repository`` is the production VCS gateway used by the release
orchestrator. Every operation shells out to ``git`` and returns a Result.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.last_matching_tag(STRICT_TAG_PATTERN):
        case Ok(tag):
            print(f"Last tag: {tag or 'none'}")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from rk.core.result import Err, Ok, Result
from rk.platform.process import ProcessError
from rk.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "tag v1.2.0")
        message: Error message (stderr when available)
        returncode: Process return code
        conflict: True when the failure is "already exists" rather than a
            broken repository or network
    """

    command: str
    message: str
    returncode: int = 1
    conflict: bool = False


class Repository:
    """Git repository driven through the git CLI.

    Attributes:
        path: Path to the repository root
        remote: Remote that releases are pushed to
    """

    def __init__(self, path: Path, *, remote: str = "origin") -> None:
        self.path = path
        self.remote = remote

    def exists(self) -> bool:
        """Check if this is a git repository (.git dir, or .git file for worktrees)."""
        return (self.path / ".git").exists()

    def has_commits(self) -> bool:
        return isinstance(self._run(["rev-parse", "--verify", "--quiet", "HEAD"]), Ok)

    # -- reads -----------------------------------------------------------

    def last_matching_tag(self, pattern: str) -> Result[str | None, GitError]:
        """Highest version tag reachable from HEAD whose full name matches ``pattern``.

        ``pattern`` is a regular expression; tags like ``latest`` or ``v1``
        are filtered out by callers passing a strict pattern.
        """
        if not self.has_commits():
            return Ok(None)

        result = self._run(["tag", "--list", "--merged", "HEAD", "--sort=-v:refname"])
        match result:
            case Err(e):
                return Err(self._error("tag --list", e))
            case Ok(stdout):
                rx = re.compile(pattern)
                for line in stdout.splitlines():
                    tag = line.strip()
                    if tag and rx.fullmatch(tag):
                        return Ok(tag)
                return Ok(None)

    def commit_subjects_since(self, tag: str | None) -> Result[list[str], GitError]:
        """Commit subjects after ``tag`` (newest first); all of HEAD when tag is None."""
        if not self.has_commits():
            return Ok([])

        rev = "HEAD" if tag is None else f"{tag}..HEAD"
        result = self._run(["log", rev, "--pretty=format:%s"])
        match result:
            case Err(e):
                return Err(self._error(f"log {rev}", e))
            case Ok(stdout):
                return Ok([ln for ln in stdout.splitlines() if ln.strip()])

    def current_short_hash(self) -> Result[str, GitError]:
        return self._read_one(["rev-parse", "--short", "HEAD"])

    def last_commit_subject(self) -> Result[str, GitError]:
        if not self.has_commits():
            return Ok("")
        return self._read_one(["log", "-1", "--pretty=%s"])

    def last_commit_author(self) -> Result[str, GitError]:
        if not self.has_commits():
            return Ok("")
        return self._read_one(["log", "-1", "--pretty=%an"])

    def has_staged_changes(self) -> Result[bool, GitError]:
        # `git diff --quiet` exits 1 when there are differences.
        result = self._run(["diff", "--cached", "--quiet"])
        match result:
            case Ok(_):
                return Ok(False)
            case Err(e) if e.returncode == 1:
                return Ok(True)
            case Err(e):
                return Err(self._error("diff --cached", e))

    # -- writes ----------------------------------------------------------

    def configure_identity(self, name: str, email: str) -> Result[None, GitError]:
        for key, value in (("user.name", name), ("user.email", email)):
            result = self._mutate(["config", key, value])
            if isinstance(result, Err):
                return result
        return Ok(None)

    def stage(self, paths: Sequence[Path]) -> Result[None, GitError]:
        if not paths:
            return Ok(None)
        return self._mutate(["add", "--", *(str(p) for p in paths)])

    def commit(self, message: str) -> Result[None, GitError]:
        return self._mutate(["commit", "-m", message])

    def tag(self, name: str) -> Result[None, GitError]:
        result = self._run(["tag", name])
        if isinstance(result, Err):
            err = self._error(f"tag {name}", result.error)
            if "already exists" in err.message:
                return Err(
                    GitError(
                        command=err.command,
                        message=err.message,
                        returncode=err.returncode,
                        conflict=True,
                    )
                )
            return Err(err)
        return Ok(None)

    def force_tag(self, name: str) -> Result[None, GitError]:
        return self._mutate(["tag", "-f", name])

    def push_current_branch_and_tags(self) -> Result[None, GitError]:
        return self._mutate(["push", self.remote, "HEAD", "--tags"])

    def force_push_tag(self, name: str) -> Result[None, GitError]:
        return self._mutate(["push", "--force", self.remote, f"refs/tags/{name}"])

    # -- helpers ---------------------------------------------------------

    def _read_one(self, args: list[str]) -> Result[str, GitError]:
        result = self._run(args)
        match result:
            case Err(e):
                return Err(self._error(" ".join(args[:2]), e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def _mutate(self, args: list[str]) -> Result[None, GitError]:
        result = self._run(args)
        match result:
            case Err(e):
                return Err(self._error(" ".join(args[:3]), e))
            case Ok(_):
                return Ok(None)

    def _error(self, command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
            returncode=e.returncode,
        )

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = _GIT_NETWORK_TIMEOUT_SECONDS if command == "push" else _GIT_TIMEOUT_SECONDS
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
