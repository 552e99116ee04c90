"""Commands: declaration decorators, metadata and the invocation context."""

from .context import (
    COLOR_MARKER,
    NATIVE_COLOR_CHAR,
    InvocationContext,
    translate_colors,
)
from .registry import (
    ITEMS,
    PLAYERS,
    CommandDescriptor,
    CompletionSource,
    LiteralSource,
    ProviderSource,
    SubcommandRegistry,
    SubcommandSpec,
    build_registry,
    command,
    parse_completion_token,
    subcommand,
    tab_complete,
)

__all__ = [
    "COLOR_MARKER",
    "ITEMS",
    "NATIVE_COLOR_CHAR",
    "PLAYERS",
    "CommandDescriptor",
    "CompletionSource",
    "InvocationContext",
    "LiteralSource",
    "ProviderSource",
    "SubcommandRegistry",
    "SubcommandSpec",
    "build_registry",
    "command",
    "parse_completion_token",
    "subcommand",
    "tab_complete",
    "translate_colors",
]
