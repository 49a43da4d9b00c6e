"""sed-style substitution expressions for ``custom-regex`` targets.

Config files may give a ``custom-regex`` pattern as a sed command such as
``s/^version = .*/version = "%VERSION%"/``. Only the substitute command is
understood: a POSIX basic regular expression, a replacement with ``&`` and
``\\1``..``\\9`` back-references, and the ``g`` and ``I`` flags. Like sed,
the expression is applied line by line and, without ``g``, replaces only the
first match on each line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from rk.core.result import Err, Ok, Result

VERSION_PLACEHOLDER = "%VERSION%"

_DELIMITERS = "/|#,:@!;~"
_FLAGS_RE = re.compile(r"[gI]*")
# Escaped in BRE to become operators; bare they are literals.
_BRE_OPERATORS = "(){}|+?"
_POSIX_CLASSES = {
    "[:digit:]": r"\d",
    "[:alpha:]": "A-Za-z",
    "[:alnum:]": "A-Za-z0-9",
    "[:upper:]": "A-Z",
    "[:lower:]": "a-z",
    "[:space:]": r"\s",
    "[:blank:]": r" \t",
}

_Part = str | int


@dataclass(frozen=True, slots=True)
class SedSubstitution:
    pattern: re.Pattern[str]
    replacement: tuple[_Part, ...]
    every: bool = False

    def _expand(self, m: re.Match[str]) -> str:
        return "".join(p if isinstance(p, str) else (m.group(p) or "") for p in self.replacement)

    def apply(self, text: str) -> tuple[str, int]:
        """Return the rewritten text and the number of replacements made."""
        limit = 0 if self.every else 1
        total = 0
        out: list[str] = []
        for line in text.splitlines(keepends=True):
            body = line.rstrip("\n")
            new, n = self.pattern.subn(self._expand, body, count=limit)
            out.append(new + line[len(body) :])
            total += n
        return "".join(out), total


def _split(expr: str) -> tuple[str, str, str, str] | None:
    if len(expr) < 4 or expr[0] != "s" or expr[1] not in _DELIMITERS:
        return None
    delim = expr[1]

    fields: list[str] = []
    buf: list[str] = []
    i = 2
    while i < len(expr):
        ch = expr[i]
        if ch == "\\" and i + 1 < len(expr):
            buf.append(expr[i : i + 2])
            i += 2
            continue
        if ch == delim and len(fields) < 2:
            fields.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
        i += 1

    if len(fields) != 2:
        return None
    return delim, fields[0], fields[1], "".join(buf).strip()


def bre_to_python(bre: str, delim: str = "/") -> str:
    """Translate a POSIX basic regular expression into Python ``re`` syntax."""
    out: list[str] = []
    i = 0
    in_bracket = False
    bracket_body = 0
    while i < len(bre):
        ch = bre[i]

        if in_bracket:
            cls = next((c for c in _POSIX_CLASSES if bre.startswith(c, i)), None)
            if cls is not None:
                out.append(_POSIX_CLASSES[cls])
                i += len(cls)
                continue
            if ch == "]":
                if i == bracket_body:
                    out.append(r"\]")
                else:
                    in_bracket = False
                    out.append("]")
            elif ch in "\\[":
                out.append("\\" + ch)
            else:
                out.append(ch)
            i += 1
            continue

        if ch == "[":
            in_bracket = True
            out.append("[")
            i += 1
            if bre.startswith("^", i):
                out.append("^")
                i += 1
            bracket_body = i
            continue

        if ch == "\\" and i + 1 < len(bre):
            nxt = bre[i + 1]
            if nxt == delim:
                out.append(re.escape(nxt))
            elif nxt in _BRE_OPERATORS:
                out.append(nxt)
            else:
                out.append(ch + nxt)
            i += 2
            continue

        out.append("\\" + ch if ch in _BRE_OPERATORS else ch)
        i += 1

    return "".join(out)


def _replacement(text: str) -> tuple[_Part, ...]:
    parts: list[_Part] = []
    buf: list[str] = []

    def flush() -> None:
        if buf:
            parts.append("".join(buf))
            buf.clear()

    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "&":
            flush()
            parts.append(0)
        elif ch == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            i += 1
            if nxt.isdigit():
                flush()
                parts.append(int(nxt))
            elif nxt == "n":
                buf.append("\n")
            else:
                buf.append(nxt)
        else:
            buf.append(ch)
        i += 1

    flush()
    return tuple(parts)


def parse_substitution(expr: str) -> Result[SedSubstitution, str] | None:
    """Parse ``s<d>regex<d>replacement<d>flags``.

    Returns None when ``expr`` is not a substitute command at all, and an
    ``Err`` with a reason when it is one that cannot be used.
    """
    split = _split(expr)
    if split is None:
        return None
    delim, regex, repl, flags = split
    if _FLAGS_RE.fullmatch(flags) is None:
        return Err(f"unsupported sed flags '{flags}'")

    try:
        pattern = re.compile(bre_to_python(regex, delim), re.IGNORECASE if "I" in flags else 0)
    except re.error as e:
        return Err(f"invalid sed expression: {e}")

    replacement = _replacement(repl)
    missing = [p for p in replacement if isinstance(p, int) and p > pattern.groups]
    if missing:
        return Err(f"invalid sed expression: no group {missing[0]}")

    return Ok(SedSubstitution(pattern=pattern, replacement=replacement, every="g" in flags))
