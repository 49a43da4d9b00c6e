"""Console output abstraction.

The release flow reports progress through ``ConsoleProtocol`` instead of
printing directly. ``RichConsole`` renders timestamped, colored lines for
humans and CI logs; ``MockConsole`` records them for tests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DEBUG = auto()
    DIM = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """Sink for release progress events."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def debug(self, message: str) -> None:
        """Only shown when verbose output is enabled."""
        ...

    def header(self, message: str) -> None: ...


_LEVEL_LABELS = {
    Style.INFO: ("INFO", "blue"),
    Style.SUCCESS: ("SUCCESS", "green"),
    Style.WARNING: ("WARNING", "yellow"),
    Style.ERROR: ("ERROR", "red bold"),
    Style.DEBUG: ("DEBUG", "dim"),
}


class RichConsole:
    """Console implementation using Rich.

    Level lines look like ``[INFO] 2024-05-01 12:00:00 - message``. Warnings
    and errors go to stderr so they stay visible when stdout is captured;
    with ``stderr=True`` everything does, leaving stdout to command results.
    """

    def __init__(self, *, verbose: bool = False, stderr: bool = False) -> None:
        from rich.console import Console

        self._out = Console(stderr=stderr, highlight=False)
        self._err = Console(stderr=True, highlight=False)
        self.verbose = verbose
        self._style_map = {
            Style.DEFAULT: "",
            Style.DIM: "dim",
            Style.HEADER: "blue bold",
        }

    def _log(self, style: Style, message: str) -> None:
        from rich.markup import escape

        label, color = _LEVEL_LABELS[style]
        stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        target = self._err if style in (Style.WARNING, Style.ERROR, Style.DEBUG) else self._out
        target.print(f"[{color}]\\[{label}][/{color}] {stamp} - {escape(message)}")

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        if style in _LEVEL_LABELS:
            self._log(style, message)
            return
        rich_style = self._style_map.get(style, "")
        if rich_style:
            self._out.print(message, style=rich_style, markup=False)
        else:
            self._out.print(message, markup=False)

    def success(self, message: str) -> None:
        self._log(Style.SUCCESS, message)

    def error(self, message: str) -> None:
        self._log(Style.ERROR, message)

    def warning(self, message: str) -> None:
        self._log(Style.WARNING, message)

    def info(self, message: str) -> None:
        self._log(Style.INFO, message)

    def debug(self, message: str) -> None:
        if self.verbose:
            self._log(Style.DEBUG, message)

    def header(self, message: str) -> None:
        self._out.print(f"\n{message}", style="blue bold", markup=False)


@dataclass
class OutputRecord:
    message: str
    style: Style


def _empty_outputs() -> list[OutputRecord]:
    return []


@dataclass
class MockConsole:
    """Console that records output for assertions in tests."""

    outputs: list[OutputRecord] = field(default_factory=_empty_outputs)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.INFO))

    def debug(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.DEBUG))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def of_style(self, style: Style) -> list[str]:
        return [o.message for o in self.outputs if o.style == style]

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
