from typing import Any, Optional, Sequence

from loguru import logger

from sancf.commands.context import (
    COLOR_MARKER,
    NATIVE_COLOR_CHAR,
    NO_PERMISSION_MESSAGE,
    InvocationContext,
)
from sancf.commands.registry import CommandDescriptor, Handler, SubcommandRegistry
from sancf.core.scheduler import InlineScheduler
from sancf.core.host import Scheduler
from sancf.errors import RegistrationError, SancfError

CONSOLE_DENIED_MESSAGE = "&cThis command can only be used by players."
NO_SUBCOMMAND_PERMISSION_MESSAGE = "&cYou don't have permission to use this subcommand."
INVALID_COMMAND_MESSAGE = "&cInvalid command."

__all__ = [
    "CONSOLE_DENIED_MESSAGE",
    "INVALID_COMMAND_MESSAGE",
    "NO_PERMISSION_MESSAGE",
    "NO_SUBCOMMAND_PERMISSION_MESSAGE",
    "Dispatcher",
    "RegistrationError",
    "SancfError",
]


class Dispatcher:
    """Routes one invocation of a registered command to its handler.

    The same dispatcher serves every command; the descriptor and subcommand
    registry are passed in per call.

    - Console gate and permission gate
    - Case-insensitive subcommand lookup with its own permission
    - Root ``execute`` fallback
    - Inline or background execution
    - Handler errors are logged, never raised

    ``dispatch`` always returns ``True``: the command line is consumed
    whatever the outcome, and the sender is told what happened.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        color_marker: str = COLOR_MARKER,
        color_char: str = NATIVE_COLOR_CHAR,
    ) -> None:
        self.scheduler = scheduler or InlineScheduler()
        self.color_marker = color_marker
        self.color_char = color_char

    def dispatch(
        self,
        descriptor: CommandDescriptor,
        registry: SubcommandRegistry,
        sender: Any,
        args: Sequence[str],
        label: Optional[str] = None,
    ) -> bool:
        context = InvocationContext.create(
            sender,
            args,
            label or descriptor.name,
            descriptor,
            color_marker=self.color_marker,
            color_char=self.color_char,
        )
        if not self._can_execute(descriptor, context):
            return True

        if context.args:
            spec = registry.get(context.args[0])
            if spec is not None:
                if not context.has_permission(spec.permission):
                    context.send_notice(NO_SUBCOMMAND_PERMISSION_MESSAGE)
                    return True
                self._execute(
                    spec.handler,
                    context,
                    spec.runs_async(descriptor),
                    name=f"{descriptor.name} {spec.name}",
                )
                return True

        if registry.root_handler is None:
            context.send_notice(INVALID_COMMAND_MESSAGE)
            return True

        self._execute(
            registry.root_handler, context, descriptor.run_async, name=descriptor.name
        )
        return True

    def _can_execute(self, descriptor: CommandDescriptor, context: InvocationContext) -> bool:
        if not descriptor.allow_console and not getattr(context.sender, "is_interactive", False):
            context.send_notice(CONSOLE_DENIED_MESSAGE)
            return False
        if not context.has_permission(descriptor.permission):
            context.send_no_permission_message()
            return False
        return True

    def _execute(
        self,
        handler: Handler,
        context: InvocationContext,
        run_async: bool,
        name: str,
    ) -> None:
        """Run handler inline or hand it to the scheduler."""

        def task() -> None:
            self._invoke(handler, context, name)

        if not run_async:
            task()
            return
        try:
            self.scheduler.run_async(task)
        except Exception:
            logger.opt(exception=True).error(f"Failed to schedule command /{name}")

    @staticmethod
    def _invoke(handler: Handler, context: InvocationContext, name: str) -> None:
        try:
            handler(context)
        except Exception:
            logger.opt(exception=True).error(f"Error executing command /{name}")
