"""Rewrite version strings in project files.

One handler per ``UpdaterKind``:

- ``json`` / ``npm``: the root ``"version"`` field of a JSON document
- ``text``: the whole file becomes ``<version>\\n``
- ``python``: every ``__version__ = ...`` assignment at line start
- ``custom-regex``: every match of a user pattern; the ``version`` named
  group (or else the first group, or else the whole match) is replaced
  or, when the pattern is a sed ``s/.../.../`` command, that command with
  ``%VERSION%`` filled in (see ``rk.release.sed``)

Files that cannot be read, parsed or written are errors. Files where nothing
matched are skipped with a reason, so the caller can warn and carry on.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path

from rk.core.result import Err, Ok, Result
from rk.core.structured import as_str_dict, get_str
from rk.platform.files import atomic_write_text
from rk.release.errors import ReleaseError
from rk.release.gateways import UpdateOutcome
from rk.release.model import UpdaterKind
from rk.release.sed import VERSION_PLACEHOLDER, SedSubstitution, parse_substitution


_PYTHON_VERSION_RE = re.compile(r"^__version__\s*=.*$", re.MULTILINE)

_Handler = Callable[[Path, str, str | None], Result[UpdateOutcome, ReleaseError]]


def _read(path: Path) -> Result[str, ReleaseError]:
    try:
        return Ok(path.read_text(encoding="utf-8"))
    except OSError as e:
        return Err(
            ReleaseError(
                kind="file_update_failed",
                message=f"failed to read {path.name}: {e}",
                hint=str(path),
            )
        )


def _write(path: Path, content: str) -> Result[UpdateOutcome, ReleaseError]:
    try:
        atomic_write_text(path, content)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="file_update_failed",
                message=f"failed to write {path.name}: {e}",
                hint=str(path),
            )
        )
    return Ok(UpdateOutcome(updated=True))


def _update_json(path: Path, version: str, _pattern: str | None) -> Result[UpdateOutcome, ReleaseError]:
    text = _read(path)
    if isinstance(text, Err):
        return text

    try:
        obj: object = json.loads(text.value)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="file_update_failed",
                message=f"invalid JSON in {path.name}: {e}",
                hint=str(path),
            )
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            ReleaseError(
                kind="file_update_failed",
                message=f"invalid JSON root in {path.name}",
                hint="Expected an object with a top-level \"version\" field.",
            )
        )

    if get_str(data, "version") == version:
        return Ok(UpdateOutcome.skipped(f"already at {version}"))

    data["version"] = version
    return _write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def _update_text(path: Path, version: str, _pattern: str | None) -> Result[UpdateOutcome, ReleaseError]:
    return _write(path, f"{version}\n")


def _update_python(path: Path, version: str, _pattern: str | None) -> Result[UpdateOutcome, ReleaseError]:
    text = _read(path)
    if isinstance(text, Err):
        return text

    new_text, count = _PYTHON_VERSION_RE.subn(f'__version__ = "{version}"', text.value)
    if count == 0:
        return Ok(UpdateOutcome.skipped("no __version__ assignment found"))
    return _write(path, new_text)


def _replace_version(m: re.Match[str], version: str) -> str:
    if "version" in m.re.groupindex:
        group: int | str = "version"
    elif m.re.groups >= 1:
        group = 1
    else:
        return version

    start, end = m.span(group)
    if start < 0:
        return m.group(0)
    offset = m.start(0)
    whole = m.group(0)
    return whole[: start - offset] + version + whole[end - offset :]


def _update_sed(
    path: Path, parsed: Result[SedSubstitution, str]
) -> Result[UpdateOutcome, ReleaseError]:
    if isinstance(parsed, Err):
        return Ok(UpdateOutcome.skipped(parsed.error))

    text = _read(path)
    if isinstance(text, Err):
        return text

    new_text, count = parsed.value.apply(text.value)
    if count == 0:
        return Ok(UpdateOutcome.skipped("pattern did not match"))
    return _write(path, new_text)


def _update_custom(path: Path, version: str, pattern: str | None) -> Result[UpdateOutcome, ReleaseError]:
    if not pattern:
        return Ok(UpdateOutcome.skipped("no pattern provided for custom-regex"))

    sed = parse_substitution(pattern.replace(VERSION_PLACEHOLDER, version))
    if sed is not None:
        return _update_sed(path, sed)

    try:
        rx = re.compile(pattern, re.MULTILINE)
    except re.error as e:
        return Ok(UpdateOutcome.skipped(f"invalid pattern: {e}"))

    text = _read(path)
    if isinstance(text, Err):
        return text

    new_text, count = rx.subn(lambda m: _replace_version(m, version), text.value)
    if count == 0:
        return Ok(UpdateOutcome.skipped("pattern did not match"))
    return _write(path, new_text)


_HANDLERS: dict[UpdaterKind, _Handler] = {
    UpdaterKind.JSON: _update_json,
    UpdaterKind.NPM: _update_json,
    UpdaterKind.TEXT: _update_text,
    UpdaterKind.PYTHON: _update_python,
    UpdaterKind.CUSTOM_REGEX: _update_custom,
}


class VersionFileUpdater:
    """Production FileUpdater backed by the handlers above."""

    def update(
        self,
        path: Path,
        version: str,
        kind: UpdaterKind,
        pattern: str | None,
    ) -> Result[UpdateOutcome, ReleaseError]:
        handler = _HANDLERS.get(kind)
        if handler is None:
            return Ok(UpdateOutcome.skipped(f"unsupported updater type: {kind}"))
        if not path.is_file():
            return Ok(UpdateOutcome.skipped("file not found"))
        return handler(path, version, pattern)
