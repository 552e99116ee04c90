"""Exception types raised inside SANCF.

None of these ever reach the host: the registrar logs and skips a failed
registration, and the dispatcher logs handler failures.
"""


class SancfError(Exception):
    """Base error for all command-related exceptions."""

    def __init__(self, message: str, command: str | None = None) -> None:
        self.message = message
        self.command = command
        super().__init__(message)


class RegistrationError(SancfError):
    """Raised when a command type cannot be turned into a bound command."""
