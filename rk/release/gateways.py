"""Interfaces the release orchestrator drives.

Production adapters live in ``rk.git.repository``, ``rk.release.gh`` and
``rk.release.updaters``; in-memory adapters for tests and dry runs live in
``rk.release.fakes``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from rk.core.result import Result
from rk.git.repository import GitError
from rk.release.errors import ReleaseError
from rk.release.model import UpdaterKind


class VcsGateway(Protocol):
    def last_matching_tag(self, pattern: str) -> Result[str | None, GitError]:
        """Most recent tag whose name fully matches the regex ``pattern``; None if there is none."""
        ...

    def commit_subjects_since(self, tag: str | None) -> Result[list[str], GitError]:
        """Subjects after ``tag``, newest first; every reachable commit if None."""
        ...

    def current_short_hash(self) -> Result[str, GitError]: ...

    def last_commit_subject(self) -> Result[str, GitError]: ...

    def last_commit_author(self) -> Result[str, GitError]: ...

    def has_staged_changes(self) -> Result[bool, GitError]: ...

    def stage(self, paths: Sequence[Path]) -> Result[None, GitError]: ...

    def commit(self, message: str) -> Result[None, GitError]: ...

    def tag(self, name: str) -> Result[None, GitError]:
        """Create an immutable tag; an existing tag is a conflict."""
        ...

    def force_tag(self, name: str) -> Result[None, GitError]: ...

    def push_current_branch_and_tags(self) -> Result[None, GitError]: ...

    def force_push_tag(self, name: str) -> Result[None, GitError]: ...

    def configure_identity(self, name: str, email: str) -> Result[None, GitError]: ...


class HostingGateway(Protocol):
    def tool_available(self) -> bool: ...

    def create_release(self, tag: str, title: str, body: str) -> Result[None, ReleaseError]: ...

    def delete_release(self, name: str) -> Result[None, ReleaseError]:
        """Delete a release; a release that does not exist is not an error."""
        ...

    def create_floating_release(
        self,
        name: str,
        title: str,
        body: str,
        *,
        mark_as_latest: bool = False,
    ) -> Result[None, ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class UpdateOutcome:
    updated: bool
    reason: str | None = None

    @classmethod
    def skipped(cls, reason: str) -> UpdateOutcome:
        return cls(updated=False, reason=reason)


class FileUpdater(Protocol):
    def update(
        self,
        path: Path,
        version: str,
        kind: UpdaterKind,
        pattern: str | None,
    ) -> Result[UpdateOutcome, ReleaseError]: ...
