"""In-memory gateways.

``MemoryRepository`` and ``MemoryHosting`` behave like a small git
repository and a GitHub project without touching disk or network. Every call
is appended to ``calls`` so tests can assert on the exact order of side
effects, and any operation listed in ``fail_on`` returns an error instead.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from rk.core.result import Err, Ok, Result
from rk.git.repository import GitError
from rk.release.errors import ReleaseError
from rk.release.model import Version


@dataclass(frozen=True, slots=True)
class MemoryCommit:
    subject: str
    author: str = "Developer"


@dataclass
class MemoryRepository:
    """A linear history with tags pointing at commit indexes.

    ``commits`` is oldest first; HEAD is the last element.
    """

    commits: list[MemoryCommit] = field(default_factory=list)
    tags: dict[str, int] = field(default_factory=dict)
    staged: list[Path] = field(default_factory=list)
    pushed_tags: list[str] = field(default_factory=list)
    identity: tuple[str, str] | None = None
    fail_on: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def add_commit(self, subject: str, author: str = "Developer") -> None:
        self.commits.append(MemoryCommit(subject, author))

    def add_tag(self, name: str) -> None:
        """Tag the current HEAD."""
        self.tags[name] = len(self.commits) - 1

    @property
    def head(self) -> int:
        return len(self.commits) - 1

    def _fail(self, op: str, message: str | None = None) -> Err[GitError] | None:
        if op not in self.fail_on:
            return None
        return Err(GitError(command=op, message=message or f"{op} failed"))

    # -- reads -----------------------------------------------------------

    def last_matching_tag(self, pattern: str) -> Result[str | None, GitError]:
        self.calls.append("last_matching_tag")
        if (failed := self._fail("last_matching_tag")) is not None:
            return failed
        rx = re.compile(pattern)
        reachable = [t for t, idx in self.tags.items() if idx <= self.head and rx.fullmatch(t)]
        if not reachable:
            return Ok(None)
        return Ok(max(reachable, key=Version.parse))

    def commit_subjects_since(self, tag: str | None) -> Result[list[str], GitError]:
        self.calls.append(f"commit_subjects_since {tag}")
        if (failed := self._fail("commit_subjects_since")) is not None:
            return failed
        if tag is None:
            start = 0
        elif tag in self.tags:
            start = self.tags[tag] + 1
        else:
            return Err(GitError(command=f"log {tag}..HEAD", message=f"unknown revision {tag}"))
        return Ok([c.subject for c in reversed(self.commits[start:])])

    def current_short_hash(self) -> Result[str, GitError]:
        return Ok(f"{self.head:07x}")

    def last_commit_subject(self) -> Result[str, GitError]:
        if (failed := self._fail("last_commit_subject")) is not None:
            return failed
        return Ok(self.commits[-1].subject if self.commits else "")

    def last_commit_author(self) -> Result[str, GitError]:
        if (failed := self._fail("last_commit_author")) is not None:
            return failed
        return Ok(self.commits[-1].author if self.commits else "")

    def has_staged_changes(self) -> Result[bool, GitError]:
        return Ok(bool(self.staged))

    # -- writes ----------------------------------------------------------

    def configure_identity(self, name: str, email: str) -> Result[None, GitError]:
        self.calls.append("configure_identity")
        if (failed := self._fail("configure_identity")) is not None:
            return failed
        self.identity = (name, email)
        return Ok(None)

    def stage(self, paths: Sequence[Path]) -> Result[None, GitError]:
        self.calls.append("stage " + " ".join(str(p) for p in paths))
        if (failed := self._fail("stage")) is not None:
            return failed
        self.staged.extend(paths)
        return Ok(None)

    def commit(self, message: str) -> Result[None, GitError]:
        self.calls.append(f"commit {message}")
        if (failed := self._fail("commit")) is not None:
            return failed
        author = self.identity[0] if self.identity is not None else "Developer"
        self.add_commit(message, author)
        self.staged.clear()
        return Ok(None)

    def tag(self, name: str) -> Result[None, GitError]:
        self.calls.append(f"tag {name}")
        if (failed := self._fail("tag")) is not None:
            return failed
        if name in self.tags:
            return Err(
                GitError(
                    command=f"tag {name}",
                    message=f"fatal: tag '{name}' already exists",
                    returncode=128,
                    conflict=True,
                )
            )
        self.add_tag(name)
        return Ok(None)

    def force_tag(self, name: str) -> Result[None, GitError]:
        self.calls.append(f"force_tag {name}")
        if (failed := self._fail("force_tag")) is not None:
            return failed
        self.add_tag(name)
        return Ok(None)

    def push_current_branch_and_tags(self) -> Result[None, GitError]:
        self.calls.append("push")
        if (failed := self._fail("push", "remote rejected")) is not None:
            return failed
        self.pushed_tags = sorted(self.tags)
        return Ok(None)

    def force_push_tag(self, name: str) -> Result[None, GitError]:
        self.calls.append(f"force_push_tag {name}")
        if (failed := self._fail("force_push_tag")) is not None:
            return failed
        if name not in self.pushed_tags:
            self.pushed_tags.append(name)
        return Ok(None)


@dataclass(frozen=True, slots=True)
class MemoryRelease:
    title: str
    body: str
    latest: bool


@dataclass
class MemoryHosting:
    available: bool = True
    releases: dict[str, MemoryRelease] = field(default_factory=dict)
    fail_on: set[str] = field(default_factory=set)
    calls: list[str] = field(default_factory=list)

    def _fail(self, op: str, name: str) -> Err[ReleaseError] | None:
        if op not in self.fail_on:
            return None
        return Err(ReleaseError(kind="hosting_failed", message=f"failed to {op} {name}"))

    def tool_available(self) -> bool:
        return self.available

    def create_release(self, tag: str, title: str, body: str) -> Result[None, ReleaseError]:
        self.calls.append(f"create_release {tag}")
        if (failed := self._fail("create_release", tag)) is not None:
            return failed
        self.releases[tag] = MemoryRelease(title=title, body=body, latest=True)
        return Ok(None)

    def delete_release(self, name: str) -> Result[None, ReleaseError]:
        self.calls.append(f"delete_release {name}")
        if (failed := self._fail("delete_release", name)) is not None:
            return failed
        self.releases.pop(name, None)
        return Ok(None)

    def create_floating_release(
        self,
        name: str,
        title: str,
        body: str,
        *,
        mark_as_latest: bool = False,
    ) -> Result[None, ReleaseError]:
        self.calls.append(f"create_floating_release {name}")
        if (failed := self._fail("create_floating_release", name)) is not None:
            return failed
        self.releases[name] = MemoryRelease(title=title, body=body, latest=mark_as_latest)
        return Ok(None)
