from __future__ import annotations

import re

from rk.release.model import BumpLevel, Version


# Release tags only; floating tags like "latest" and "v1" never match.
STRICT_TAG_PATTERN = r"v(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"

_STRICT_TAG_RE = re.compile(rf"^{STRICT_TAG_PATTERN}$")


def parse_strict_tag(tag: str) -> Version | None:
    m = _STRICT_TAG_RE.match(tag)
    if m is None:
        return None
    return Version(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def next_version(current: Version, bump: BumpLevel) -> Version:
    match bump:
        case BumpLevel.MAJOR:
            return Version(current.major + 1, 0, 0)
        case BumpLevel.MINOR:
            return Version(current.major, current.minor + 1, 0)
        case BumpLevel.PATCH:
            return Version(current.major, current.minor, current.patch + 1)
        case BumpLevel.NONE:
            return current
