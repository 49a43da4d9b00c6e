"""Error types for the release flow."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from rk.release.model import Phase

ReleaseErrorKind = Literal[
    "config_invalid",
    "gh_missing",
    "git_failed",
    "tag_exists",
    "hosting_failed",
    "file_update_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    ``phase`` is filled in by the orchestrator so the CLI can say which step
    of the release failed.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    phase: Phase | None = None

    def in_phase(self, phase: Phase) -> ReleaseError:
        if self.phase is not None:
            return self
        return replace(self, phase=phase)

    def pretty(self) -> str:
        prefix = f"[{self.phase}] " if self.phase is not None else ""
        if self.hint:
            return f"{prefix}{self.message} (hint: {self.hint})"
        return f"{prefix}{self.message}"
