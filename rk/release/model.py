from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum, StrEnum
from pathlib import Path
from typing import Literal


class BumpLevel(IntEnum):
    """Magnitude of a version change. Ordered: NONE < PATCH < MINOR < MAJOR."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, text: str) -> BumpLevel | None:
        try:
            return cls[text.strip().upper()]
        except KeyError:
            return None


class UpdaterKind(StrEnum):
    JSON = "json"
    NPM = "npm"
    TEXT = "text"
    PYTHON = "python"
    CUSTOM_REGEX = "custom-regex"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, text: str) -> UpdaterKind:
        try:
            return cls(text.strip().lower())
        except ValueError:
            return cls.UNSUPPORTED


class Phase(StrEnum):
    LOOP_CHECK = "loop_check"
    TAG_DISCOVERY = "tag_discovery"
    COMMIT_COLLECTION = "commit_collection"
    CLASSIFICATION = "classification"
    VERSION_COMPUTE = "version_compute"
    NOTES_GENERATION = "notes_generation"
    FILE_UPDATES = "file_updates"
    COMMIT_AND_TAG = "commit_and_tag"
    FLOATING_TAG_UPDATE = "floating_tag_update"
    PLATFORM_PUBLISH = "platform_publish"
    DONE = "done"


@dataclass(frozen=True, slots=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_tag(self) -> str:
        return f"v{self}"

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse "v1.2.3", "1.2", "v" and friends; never raises.

        A single leading "v" is stripped and missing or non-numeric
        components become 0.
        """
        raw = text.strip()
        if raw.startswith("v"):
            raw = raw[1:]
        parts = raw.split(".")
        nums = [_leading_int(p) for p in parts[:3]]
        nums += [0] * (3 - len(nums))
        return cls(nums[0], nums[1], nums[2])


def _leading_int(part: str) -> int:
    digits = ""
    for ch in part.strip():
        if not ch.isdigit():
            break
        digits += ch
    return int(digits) if digits else 0


BASELINE_TAG = "v0.0.0"


@dataclass(frozen=True, slots=True)
class CommitTypeRule:
    """Maps a conventional-commit type tag to a bump level and notes section."""

    type_tag: str
    section: str
    bump: BumpLevel
    hidden: bool = False


@dataclass(frozen=True, slots=True)
class CommitRecord:
    subject: str
    type_tag: str | None
    breaking: bool


@dataclass(frozen=True, slots=True)
class FileTarget:
    path: Path
    kind: UpdaterKind
    pattern: str | None = None
    # As written in the config; kept so unsupported kinds can be reported.
    raw_kind: str = ""


@dataclass(frozen=True, slots=True)
class FloatingRef:
    name: str


@dataclass(frozen=True, slots=True)
class ReleaseDecision:
    previous_tag: str
    next_version: Version
    bump: BumpLevel
    commits: tuple[CommitRecord, ...]
    notes: str

    @property
    def tag(self) -> str:
        return self.next_version.to_tag()


RunStatus = Literal["released", "loop_prevented", "no_commits", "no_bump", "dry_run"]


@dataclass(frozen=True, slots=True)
class RunOutcome:
    status: RunStatus
    decision: ReleaseDecision | None = None
    floating_refs: tuple[FloatingRef, ...] = ()
    updated_files: tuple[Path, ...] = ()

    @property
    def released(self) -> bool:
        return self.status == "released"
