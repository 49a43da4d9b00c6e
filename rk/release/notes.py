from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from pathlib import Path

from rk.core.result import Err, Ok, Result
from rk.platform.files import atomic_write_text
from rk.release.errors import ReleaseError
from rk.release.model import CommitRecord, CommitTypeRule


BREAKING_SECTION = "⚠ BREAKING CHANGES"


def _section(title: str, subjects: Sequence[str]) -> str:
    lines = [f"### {title}", ""]
    lines.extend(f"- {s}" for s in subjects)
    return "\n".join(lines)


def build_notes(commits: Sequence[CommitRecord], rules: Sequence[CommitTypeRule]) -> str:
    """Group commit subjects into markdown sections.

    Breaking changes come first. Then one section per visible rule, in the
    order the rules are declared. Empty sections are never emitted.
    """
    sections: list[str] = []

    breaking = [c.subject for c in commits if c.breaking]
    if breaking:
        sections.append(_section(BREAKING_SECTION, breaking))

    for rule in rules:
        if rule.hidden:
            continue
        matches = [c.subject for c in commits if c.type_tag == rule.type_tag]
        if matches:
            sections.append(_section(rule.section, matches))

    return "\n\n".join(sections)


def build_changelog_entry(version: str, notes: str, day: date) -> str:
    return f"# {version} ({day.isoformat()})\n\n{notes}\n\n"


def prepend_changelog(path: Path, entry: str) -> Result[None, ReleaseError]:
    """Write ``entry`` above the existing changelog content, which is kept as is."""
    previous = ""
    if path.exists():
        try:
            previous = path.read_text(encoding="utf-8")
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="file_update_failed",
                    message=f"failed to read changelog: {e}",
                    hint=str(path),
                )
            )

    try:
        atomic_write_text(path, entry + previous)
    except OSError as e:
        return Err(
            ReleaseError(
                kind="file_update_failed",
                message=f"failed to write changelog: {e}",
                hint=str(path),
            )
        )
    return Ok(None)
