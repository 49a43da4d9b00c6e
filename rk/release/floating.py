from __future__ import annotations

from dataclasses import dataclass

from rk.release.model import FloatingRef


LATEST_TAG = "latest"


@dataclass(frozen=True, slots=True)
class MajorRef:
    name: str
    # False when the input tag was already major-only ("v2").
    distinct: bool


def major_of(tag: str) -> MajorRef:
    if "." not in tag:
        return MajorRef(name=tag, distinct=False)
    return MajorRef(name=tag.split(".", 1)[0], distinct=True)


def floating_refs(
    tag: str,
    *,
    update_latest: bool,
    update_majors: bool,
) -> tuple[FloatingRef, ...]:
    """Floating refs to move for a new release tag, in update order."""
    refs: list[FloatingRef] = []
    if update_latest:
        refs.append(FloatingRef(name=LATEST_TAG))
    if update_majors:
        major = major_of(tag)
        if major.distinct:
            refs.append(FloatingRef(name=major.name))
    return tuple(refs)
