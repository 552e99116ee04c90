"""SANCF: declarative command routing with subcommands, permissions and tab completion.

Declare commands with the decorators exported here, then register them with
:class:`sancf.core.registrar.Registrar`.
"""

from sancf.commands import (
    CommandDescriptor,
    InvocationContext,
    command,
    subcommand,
    tab_complete,
)
from sancf.errors import RegistrationError, SancfError

__version__ = "1.0.0"

__all__ = [
    "CommandDescriptor",
    "InvocationContext",
    "RegistrationError",
    "SancfError",
    "command",
    "subcommand",
    "tab_complete",
]
