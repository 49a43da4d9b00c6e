"""Typed release configuration.

The configuration file (``release-config.json`` by default, TOML accepted
too) is read once into a frozen ``ReleaseConfig`` that is passed to the
orchestrator. Problems that only affect one entry (an unknown bump level, a
duplicate commit type, a target path outside the repository) are reported as
warnings and the entry is defaulted or dropped; a file that cannot be parsed
is an error.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from rk.core.result import Err, Ok, Result
from rk.core.structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_list,
    get_raw_str,
    get_str,
    get_table,
)
from rk.release.classify import dedupe_rules, is_valid_type_tag
from rk.release.errors import ReleaseError
from rk.release.model import BumpLevel, CommitTypeRule, FileTarget, UpdaterKind

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_COMMIT_TYPES",
    "DEFAULT_CONFIG_FILE",
    "ChangelogConfig",
    "ConfigError",
    "FloatingTagsConfig",
    "GitHubConfig",
    "IdentityConfig",
    "LoadedConfig",
    "ReleaseConfig",
    "load_config",
    "resolve_config_path",
]

DEFAULT_CONFIG_FILE = "release-config.json"
DEFAULT_CHANGELOG = "CHANGELOG.md"
CONFIG_ENV_VAR = "CONFIG_FILE_PATH"

DEFAULT_IDENTITY_NAME = "GitHub Actions"
DEFAULT_IDENTITY_EMAIL = "actions@github.com"

DEFAULT_COMMIT_TYPES: tuple[CommitTypeRule, ...] = (
    CommitTypeRule("feat", "Features", BumpLevel.MINOR),
    CommitTypeRule("fix", "Bug Fixes", BumpLevel.PATCH),
    CommitTypeRule("perf", "Performance", BumpLevel.PATCH),
    CommitTypeRule("revert", "Reverts", BumpLevel.PATCH),
    CommitTypeRule("docs", "Documentation", BumpLevel.NONE, hidden=True),
    CommitTypeRule("style", "Styles", BumpLevel.NONE, hidden=True),
    CommitTypeRule("chore", "Chores", BumpLevel.NONE, hidden=True),
    CommitTypeRule("refactor", "Refactor", BumpLevel.NONE, hidden=True),
    CommitTypeRule("test", "Tests", BumpLevel.NONE, hidden=True),
    CommitTypeRule("build", "Build", BumpLevel.NONE, hidden=True),
    CommitTypeRule("ci", "CI", BumpLevel.NONE, hidden=True),
)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the config file cannot be read or parsed."""

    message: str
    path: Path | None = None

    def as_release_error(self) -> ReleaseError:
        where = f"{self.path}: " if self.path is not None else ""
        return ReleaseError(
            kind="config_invalid",
            message=f"{where}{self.message}",
            hint="Fix the config file or pass another one with --config",
        )


@dataclass(frozen=True, slots=True)
class ChangelogConfig:
    enabled: bool = True
    output: Path = Path(DEFAULT_CHANGELOG)


@dataclass(frozen=True, slots=True)
class FloatingTagsConfig:
    """Floating tags are force-pushed, so both are opt-in."""

    update_latest: bool = False
    update_majors: bool = False


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    enabled: bool = False


@dataclass(frozen=True, slots=True)
class IdentityConfig:
    """Author of release commits, also used to recognise them for loop prevention."""

    name: str = DEFAULT_IDENTITY_NAME
    email: str = DEFAULT_IDENTITY_EMAIL


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    commit_types: tuple[CommitTypeRule, ...] = DEFAULT_COMMIT_TYPES
    targets: tuple[FileTarget, ...] = ()
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)
    floating_tags: FloatingTagsConfig = field(default_factory=FloatingTagsConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)
    identity: IdentityConfig = field(default_factory=IdentityConfig)

    @classmethod
    def without_file(cls) -> ReleaseConfig:
        """Configuration used when no config file exists: publish to GitHub."""
        return cls(github=GitHubConfig(enabled=True))


@dataclass(frozen=True, slots=True)
class LoadedConfig:
    config: ReleaseConfig
    warnings: tuple[str, ...] = ()
    path: Path | None = None


def _parse_commit_types(
    data: Mapping[str, object], warnings: list[str]
) -> tuple[CommitTypeRule, ...]:
    raw = get_list(data, "commitTypes")
    if raw is None:
        if "commitTypes" in data:
            warnings.append("commitTypes must be a list; using default commit types")
        return DEFAULT_COMMIT_TYPES

    rules: list[CommitTypeRule] = []
    for i, item in enumerate(raw):
        entry = as_str_dict(item)
        type_tag = get_str(entry, "type") if entry is not None else None
        if entry is None or type_tag is None:
            warnings.append(f"commitTypes[{i}]: missing 'type'; entry ignored")
            continue
        if not is_valid_type_tag(type_tag):
            warnings.append(
                f"commitTypes[{i}]: '{type_tag}' is not a valid commit type; entry ignored"
            )
            continue

        bump_text = get_str(entry, "bump") or "none"
        bump = BumpLevel.parse(bump_text)
        if bump is None:
            warnings.append(f"Unknown bump type '{bump_text}' for '{type_tag}'; using 'none'")
            bump = BumpLevel.NONE

        rules.append(
            CommitTypeRule(
                type_tag=type_tag,
                section=get_str(entry, "section") or type_tag,
                bump=bump,
                hidden=bool(get_bool(entry, "hidden")),
            )
        )

    kept, dropped = dedupe_rules(rules)
    for rule in dropped:
        warnings.append(
            f"Duplicate commit type '{rule.type_tag}' ignored; the first declaration wins"
        )
    return kept


def _is_inside_repo(path: str) -> bool:
    p = PurePosixPath(path.replace("\\", "/"))
    if p.is_absolute() or Path(path).is_absolute():
        return False
    depth = 0
    for part in p.parts:
        depth += -1 if part == ".." else (0 if part == "." else 1)
        if depth < 0:
            return False
    return True


def _parse_targets(data: Mapping[str, object], warnings: list[str]) -> tuple[FileTarget, ...]:
    raw = get_list(data, "targets")
    if raw is None:
        return ()

    targets: list[FileTarget] = []
    for i, item in enumerate(raw):
        entry = as_str_dict(item)
        path = get_str(entry, "path") if entry is not None else None
        if entry is None or path is None:
            warnings.append(f"targets[{i}]: missing 'path'; entry ignored")
            continue
        if not _is_inside_repo(path):
            warnings.append(f"targets[{i}]: '{path}' is outside the repository; entry ignored")
            continue

        raw_kind = get_str(entry, "type") or ""
        targets.append(
            FileTarget(
                path=Path(path),
                kind=UpdaterKind.parse(raw_kind),
                pattern=get_raw_str(entry, "pattern"),
                raw_kind=raw_kind,
            )
        )
    return tuple(targets)


def _github_enabled(github: StrDict) -> bool:
    # "enabled" is canonical; "active" and "enable" come from older config files.
    for key in ("enabled", "active", "enable"):
        value = get_bool(github, key)
        if value is not None:
            return value
    return False


def config_from_dict(data: Mapping[str, object]) -> LoadedConfig:
    """Build a ReleaseConfig from parsed JSON/TOML, collecting warnings."""
    warnings: list[str] = []

    changelog: StrDict = get_table(data, "changelog") or {}
    floating: StrDict = get_table(data, "floatingTags") or {}
    github: StrDict = get_table(data, "github") or {}
    identity: StrDict = get_table(data, "identity") or {}

    changelog_enabled = get_bool(changelog, "enabled")
    if changelog_enabled is None:
        changelog_enabled = get_bool(changelog, "enable")

    changelog_output = get_str(changelog, "output") or DEFAULT_CHANGELOG
    if not _is_inside_repo(changelog_output):
        warnings.append(
            f"changelog.output: '{changelog_output}' is outside the repository; "
            f"using {DEFAULT_CHANGELOG}"
        )
        changelog_output = DEFAULT_CHANGELOG

    config = ReleaseConfig(
        commit_types=_parse_commit_types(data, warnings),
        targets=_parse_targets(data, warnings),
        changelog=ChangelogConfig(
            enabled=True if changelog_enabled is None else changelog_enabled,
            output=Path(changelog_output),
        ),
        floating_tags=FloatingTagsConfig(
            update_latest=bool(get_bool(floating, "updateLatest")),
            update_majors=bool(get_bool(floating, "updateMajors")),
        ),
        github=GitHubConfig(enabled=_github_enabled(github)),
        identity=IdentityConfig(
            name=get_str(identity, "name") or DEFAULT_IDENTITY_NAME,
            email=get_str(identity, "email") or DEFAULT_IDENTITY_EMAIL,
        ),
    )
    return LoadedConfig(config=config, warnings=tuple(warnings))


def _parse_file(path: Path) -> Result[StrDict, ConfigError]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return Err(ConfigError(f"Cannot read config: {e}", path=path))

    data_obj: object
    if path.suffix == ".toml":
        import tomllib

        try:
            data_obj = tomllib.loads(text)
        except tomllib.TOMLDecodeError as e:
            return Err(ConfigError(f"Invalid TOML: {e}", path=path))
    else:
        try:
            data_obj = json.loads(text)
        except json.JSONDecodeError as e:
            return Err(ConfigError(f"Invalid JSON: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be an object", path=path))
    return Ok(data)


def resolve_config_path(repo_root: Path, explicit: Path | None = None) -> Path:
    """Pick the config file: explicit flag, then $CONFIG_FILE_PATH, then the default."""
    if explicit is not None:
        candidate = explicit
    else:
        candidate = Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE)
    return candidate if candidate.is_absolute() else repo_root / candidate


def load_config(path: Path) -> Result[LoadedConfig, ConfigError]:
    """Load configuration from ``path``.

    A missing file is not an error: the defaults are returned along with a
    warning, matching a repository that has never been configured.
    """
    if not path.exists():
        return Ok(
            LoadedConfig(
                config=ReleaseConfig.without_file(),
                warnings=(f"Config file {path.name} not found. Using default configuration.",),
            )
        )

    parsed = _parse_file(path)
    if isinstance(parsed, Err):
        return parsed

    loaded = config_from_dict(parsed.value)
    return Ok(LoadedConfig(config=loaded.config, warnings=loaded.warnings, path=path))
