"""Interfaces SANCF consumes from its host, plus a small in-memory host.

The core never owns actors, permissions, schedulers or completion catalogues;
it talks to them through the protocols below. ``SimpleCommandMap``,
``ConsoleSender`` and ``User`` implement them for the bundled CLI and tests.
"""

from __future__ import annotations

import re
import shlex
import sys
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol, Sequence, TextIO

from sancf.commands.context import COLOR_MARKER, NATIVE_COLOR_CHAR
from sancf.core.completion import CompletionProviders
from sancf.errors import RegistrationError
from utils.logger import get_logger

logger = get_logger().getChild("Host")

ExecuteFn = Callable[["CommandSender", str, Sequence[str]], bool]
CompleteFn = Callable[["CommandSender", str, Sequence[str]], list]


class CommandSender(Protocol):
    is_interactive: bool

    def has_permission(self, name: str) -> bool: ...

    def send_message(self, text: str) -> None: ...


class CommandMap(Protocol):
    def bind(
        self,
        name: str,
        execute: ExecuteFn,
        complete: CompleteFn,
        *,
        description: str = "",
        permission: Optional[str] = None,
        usage: str = "",
        aliases: Sequence[str] = (),
    ) -> Sequence[str]:
        """Bind ``name``; returns the aliases that were actually bound."""
        ...

    def unbind(self, name: str) -> None: ...


class Scheduler(Protocol):
    def run_async(self, fn: Callable[[], None]) -> None: ...


@dataclass
class Host:
    """Everything a :class:`~sancf.core.registrar.Registrar` needs from the application."""

    name: str
    command_map: CommandMap
    scheduler: Scheduler
    providers: CompletionProviders = field(default_factory=CompletionProviders)
    color_marker: str = COLOR_MARKER
    color_char: str = NATIVE_COLOR_CHAR


# ----------------------------------------------------------------------
# In-memory reference implementation


@dataclass
class BoundEntry:
    name: str
    execute: ExecuteFn
    complete: CompleteFn
    description: str = ""
    permission: Optional[str] = None
    usage: str = ""
    aliases: tuple[str, ...] = ()


class SimpleCommandMap:
    """Dictionary-backed command map keyed by lower-cased label."""

    def __init__(self) -> None:
        self._entries: dict[str, BoundEntry] = {}
        self._labels: dict[str, str] = {}

    def bind(
        self,
        name: str,
        execute: ExecuteFn,
        complete: CompleteFn,
        *,
        description: str = "",
        permission: Optional[str] = None,
        usage: str = "",
        aliases: Sequence[str] = (),
    ) -> tuple[str, ...]:
        key = name.lower()
        if key in self._labels:
            raise RegistrationError(f"Command label '{key}' is already bound", key)
        bound_aliases = []
        for alias in aliases:
            alias = alias.lower()
            if alias in self._labels or alias == key:
                logger.warning("Alias '%s' of '%s' is already taken; skipping", alias, key)
                continue
            bound_aliases.append(alias)
        entry = BoundEntry(
            name=key,
            execute=execute,
            complete=complete,
            description=description,
            permission=permission,
            usage=usage,
            aliases=tuple(bound_aliases),
        )
        self._entries[key] = entry
        self._labels[key] = key
        for alias in bound_aliases:
            self._labels[alias] = key
        return entry.aliases

    def unbind(self, name: str) -> None:
        entry = self._entries.pop(name.lower(), None)
        if entry is None:
            return
        for label in (entry.name, *entry.aliases):
            self._labels.pop(label, None)

    def get(self, label: str) -> Optional[BoundEntry]:
        key = self._labels.get(label.lower())
        return self._entries.get(key) if key else None

    def labels(self) -> list[str]:
        return sorted(self._labels)

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and label.lower() in self._labels

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    def dispatch_line(self, sender: CommandSender, line: str) -> bool:
        """Execute a typed command line; ``False`` when the label is unknown."""
        tokens = _split(line)
        if not tokens:
            return False
        label, args = tokens[0].lstrip("/"), tokens[1:]
        entry = self.get(label)
        if entry is None:
            return False
        return entry.execute(sender, label, args)

    def complete_line(self, sender: CommandSender, line: str) -> list[str]:
        """Suggestions for the last token of a partially typed line."""
        tokens = _split(line)
        if line.endswith(" "):
            tokens.append("")
        if len(tokens) <= 1:
            prefix = tokens[0].lstrip("/").lower() if tokens else ""
            return [label for label in self.labels() if label.startswith(prefix)]
        label = tokens[0].lstrip("/")
        entry = self.get(label)
        if entry is None:
            return []
        return entry.complete(sender, label, tokens[1:])


def _split(line: str) -> list[str]:
    try:
        return shlex.split(line)
    except ValueError:
        return line.split()


_ANSI_COLORS = {
    "0": "30", "1": "34", "2": "32", "3": "36", "4": "31", "5": "35", "6": "33", "7": "37",
    "8": "90", "9": "94", "a": "92", "b": "96", "c": "91", "d": "95", "e": "93", "f": "97",
    "l": "1", "n": "4", "o": "3", "m": "9", "r": "0",
}


def _color_pattern(native: str) -> "re.Pattern[str]":
    return re.compile(re.escape(native) + r"([0-9a-fk-or])", re.IGNORECASE)


def to_ansi(text: str, enabled: bool = True, native: str = NATIVE_COLOR_CHAR) -> str:
    """Render native colour codes as ANSI escapes, or strip them."""

    def replace(match: re.Match) -> str:
        code = _ANSI_COLORS.get(match.group(1).lower())
        if not enabled or code is None:
            return ""
        return f"\x1b[{code}m"

    rendered = _color_pattern(native).sub(replace, text)
    if enabled and rendered != text:
        rendered += "\x1b[0m"
    return rendered


class ConsoleSender:
    """The server console: not interactive, holds every permission."""

    is_interactive = False

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        color: bool = False,
        color_char: str = NATIVE_COLOR_CHAR,
    ) -> None:
        self.stream = stream
        self.color = color
        self.color_char = color_char
        self.name = "CONSOLE"
        self.messages: list[str] = []

    def has_permission(self, name: str) -> bool:
        return True

    def send_message(self, text: str) -> None:
        self.messages.append(text)
        print(to_ansi(text, self.color, self.color_char), file=self.stream or sys.stdout)


class User:
    """An interactive actor holding an explicit set of permissions."""

    is_interactive = True

    def __init__(
        self,
        name: str,
        permissions: Iterable[str] = (),
        stream: Optional[TextIO] = None,
        color: bool = False,
        color_char: str = NATIVE_COLOR_CHAR,
    ) -> None:
        self.name = name
        self.permissions = set(permissions)
        self.stream = stream
        self.color = color
        self.color_char = color_char
        self.messages: list[str] = []

    def has_permission(self, name: str) -> bool:
        return "*" in self.permissions or name in self.permissions

    def send_message(self, text: str) -> None:
        self.messages.append(text)
        if self.stream is not None:
            print(to_ansi(text, self.color, self.color_char), file=self.stream)
