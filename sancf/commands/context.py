from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from sancf.commands.registry import CommandDescriptor

COLOR_MARKER = "&"
NATIVE_COLOR_CHAR = "§"

NO_PERMISSION_MESSAGE = "&cYou don't have permission to use this command."
USAGE_TEMPLATE = "&cUsage: {usage}"


def translate_colors(
    message: str, marker: str = COLOR_MARKER, native: str = NATIVE_COLOR_CHAR
) -> str:
    """Rewrite every ``marker`` character to the host's colour escape."""
    return message.replace(marker, native)


@dataclass(frozen=True)
class InvocationContext:
    """Context object passed to command handlers.

    Wraps the sender and the raw argument tokens of a single invocation. The
    arguments are the full token list, so inside a subcommand handler
    ``arg(0)`` is the subcommand name itself.
    """

    sender: Any
    args: tuple[str, ...] = ()
    label: Optional[str] = None
    command: Optional["CommandDescriptor"] = field(default=None, compare=False)
    color_marker: str = field(default=COLOR_MARKER, compare=False)
    color_char: str = field(default=NATIVE_COLOR_CHAR, compare=False)

    @classmethod
    def create(
        cls,
        sender: Any,
        args: Sequence[str],
        label: Optional[str] = None,
        command: Optional["CommandDescriptor"] = None,
        *,
        color_marker: str = COLOR_MARKER,
        color_char: str = NATIVE_COLOR_CHAR,
    ) -> "InvocationContext":
        return cls(sender, tuple(args), label, command, color_marker, color_char)

    def arg(self, index: int) -> Optional[str]:
        if index < 0 or index >= len(self.args):
            return None
        return self.args[index]

    @property
    def arg_count(self) -> int:
        return len(self.args)

    def send_message(self, message: str) -> None:
        text = translate_colors(message, self.color_marker, self.color_char)
        self.sender.send_message(text)

    def has_permission(self, permission: Optional[str]) -> bool:
        return not permission or bool(self.sender.has_permission(permission))

    def send_notice(self, message: str) -> None:
        """Send a built-in message; these are always written with ``&`` codes."""
        self.sender.send_message(translate_colors(message, COLOR_MARKER, self.color_char))

    def send_no_permission_message(self) -> None:
        self.send_notice(NO_PERMISSION_MESSAGE)

    def send_usage_message(self, usage: Optional[str] = None) -> None:
        if usage is None:
            usage = self.command.usage if self.command is not None else ""
        template = translate_colors(USAGE_TEMPLATE, COLOR_MARKER, self.color_char)
        usage = translate_colors(usage, self.color_marker, self.color_char)
        self.sender.send_message(template.format(usage=usage))
