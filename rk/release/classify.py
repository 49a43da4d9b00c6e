"""Conventional-commit classification.

A commit subject looks like ``<type>(<scope>)!: <description>``; scope and
``!`` are optional. Classification only looks at the type tag and at the
breaking-change markers, the scope is never interpreted.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from rk.release.model import BumpLevel, CommitRecord, CommitTypeRule


TYPE_TAG_PATTERN = r"[A-Za-z][\w-]*"
# A scope never contains ")", so a later "(...)!:" in the description is not read as one.
_SCOPE = r"(\([^)]*\))?"

_BREAKING_FOOTER_RE = re.compile(r"^BREAKING CHANGE", re.MULTILINE)
_BREAKING_BANG_RE = re.compile(rf"^{TYPE_TAG_PATTERN}{_SCOPE}!:", re.MULTILINE)
_TYPE_TAG_RE = re.compile(rf"^({TYPE_TAG_PATTERN}){_SCOPE}!?:")
_VALID_TAG_RE = re.compile(TYPE_TAG_PATTERN)

# Highest first: the first level with a matching commit wins.
_LEVEL_PRIORITY = (BumpLevel.MAJOR, BumpLevel.MINOR, BumpLevel.PATCH)


def is_breaking(message: str) -> bool:
    """True for a ``BREAKING CHANGE`` footer line or a ``type!:`` subject."""
    return bool(_BREAKING_FOOTER_RE.search(message) or _BREAKING_BANG_RE.search(message))


def is_valid_type_tag(tag: str) -> bool:
    """True when ``tag`` can appear as the type of a commit subject."""
    return _VALID_TAG_RE.fullmatch(tag) is not None


def type_tag_of(subject: str) -> str | None:
    m = _TYPE_TAG_RE.match(subject)
    if m is None:
        return None
    return m.group(1)


def dedupe_rules(
    rules: Iterable[CommitTypeRule],
) -> tuple[tuple[CommitTypeRule, ...], tuple[CommitTypeRule, ...]]:
    """Split rules into (kept, dropped); the first rule declared for a tag wins."""
    kept: list[CommitTypeRule] = []
    dropped: list[CommitTypeRule] = []
    seen: set[str] = set()
    for rule in rules:
        if rule.type_tag in seen:
            dropped.append(rule)
            continue
        seen.add(rule.type_tag)
        kept.append(rule)
    return tuple(kept), tuple(dropped)


def rule_for(type_tag: str | None, rules: Sequence[CommitTypeRule]) -> CommitTypeRule | None:
    if type_tag is None:
        return None
    for rule in rules:
        if rule.type_tag == type_tag:
            return rule
    return None


def parse_commit(subject: str, rules: Sequence[CommitTypeRule]) -> CommitRecord:
    rule = rule_for(type_tag_of(subject), rules)
    return CommitRecord(
        subject=subject,
        type_tag=rule.type_tag if rule is not None else None,
        breaking=is_breaking(subject),
    )


def parse_commits(
    subjects: Iterable[str], rules: Sequence[CommitTypeRule]
) -> tuple[CommitRecord, ...]:
    return tuple(parse_commit(s, rules) for s in subjects)


def _level_pattern(tags: Sequence[str]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(t) for t in tags)
    return re.compile(rf"^({alternation}){_SCOPE}:", re.MULTILINE)


def classify(commits: Sequence[str], rules: Sequence[CommitTypeRule]) -> BumpLevel:
    """Decide the bump level for a batch of commit messages.

    Breaking changes always win. Otherwise the highest configured level with
    at least one matching commit is returned, or NONE.
    """
    if not commits:
        return BumpLevel.NONE

    if any(is_breaking(c) for c in commits):
        return BumpLevel.MAJOR

    kept, _ = dedupe_rules(rules)
    for level in _LEVEL_PRIORITY:
        tags = [r.type_tag for r in kept if r.bump == level and is_valid_type_tag(r.type_tag)]
        if not tags:
            continue
        pattern = _level_pattern(tags)
        if any(pattern.search(c) for c in commits):
            return level

    return BumpLevel.NONE
