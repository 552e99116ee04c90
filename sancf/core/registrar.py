"""Discovery of ``@command`` types and binding into the host command map."""

from __future__ import annotations

import inspect
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Iterable, Optional, Sequence

from command_dispatcher import Dispatcher
from sancf.commands.registry import (
    CommandDescriptor,
    SubcommandRegistry,
    build_registry,
    descriptor_of,
    is_command_type,
)
from sancf.core.completion import CompletionResolver
from sancf.core.host import CommandSender, Host
from sancf.errors import RegistrationError
from utils.logger import get_logger

logger = get_logger().getChild("Registrar")


@dataclass
class RegisteredCommand:
    """A command bound into the host: its metadata, handlers and entry points."""

    descriptor: CommandDescriptor
    registry: SubcommandRegistry
    instance: object
    dispatcher: Dispatcher
    resolver: CompletionResolver

    @property
    def name(self) -> str:
        return self.descriptor.name

    def execute(self, sender: CommandSender, label: str, args: Sequence[str]) -> bool:
        return self.dispatcher.dispatch(self.descriptor, self.registry, sender, args, label)

    def complete(self, sender: CommandSender, alias: str, args: Sequence[str]) -> list[str]:
        return self.resolver.complete(self.descriptor, self.registry, args)


class Registrar:
    """Owns the registered commands of one host.

    Build it once at startup and pass it to whatever needs to register or
    look up commands. Registration is expected to happen on a single thread
    before the first dispatch; lookups afterwards are read-only.
    """

    def __init__(
        self,
        host: Host,
        dispatcher: Optional[Dispatcher] = None,
        resolver: Optional[CompletionResolver] = None,
    ) -> None:
        self.host = host
        self.dispatcher = dispatcher or Dispatcher(
            host.scheduler, host.color_marker, host.color_char
        )
        self.resolver = resolver or CompletionResolver(host.providers)
        self._commands: dict[str, RegisteredCommand] = {}
        self._aliases: dict[str, str] = {}

    # ------------------------------------------------------------------
    def register_all(self, scope: Any) -> list[RegisteredCommand]:
        """Instantiate and register every ``@command`` type found in ``scope``.

        ``scope`` may be a module, a class whose nested classes are scanned,
        or an iterable of classes. A type that cannot be constructed or bound
        is logged and skipped.
        """
        registered: list[RegisteredCommand] = []
        for cls in self._scan(scope):
            try:
                instance = cls()
            except Exception as e:
                logger.error("Cannot instantiate command type %s: %s", cls.__qualname__, e)
                continue
            command = self.register_one(instance)
            if command is not None:
                registered.append(command)
        return registered

    def register_one(self, instance: object) -> Optional[RegisteredCommand]:
        """Register an already-constructed command instance."""
        cls = type(instance)
        try:
            command = self._build(instance)
            bound_aliases = self._bind(command)
        except RegistrationError as e:
            logger.warning("Skipping command %s: %s", cls.__qualname__, e.message)
            return None
        except Exception:
            logger.exception("Failed to register command %s", cls.__qualname__)
            return None

        descriptor = command.descriptor
        self._commands[descriptor.name] = command
        for alias in descriptor.aliases:
            if alias not in bound_aliases:
                continue
            if alias in self._commands or alias in self._aliases:
                logger.warning("Alias '%s' of /%s is already in use", alias, descriptor.name)
                continue
            self._aliases[alias] = descriptor.name
        logger.info("[%s] Registered command: %s", self.host.name, descriptor.name)
        return command

    def unregister_all(self) -> None:
        """Remove every binding from the host map and forget all commands."""
        for name in list(self._commands):
            try:
                self.host.command_map.unbind(name)
            except Exception:
                logger.exception("Failed to unbind command %s", name)
        self._commands.clear()
        self._aliases.clear()
        logger.info("[%s] Unregistered all commands", self.host.name)

    # ------------------------------------------------------------------
    def get(self, label: str) -> Optional[RegisteredCommand]:
        """Resolve a command by its name or one of its aliases."""
        key = label.lower()
        if key in self._commands:
            return self._commands[key]
        name = self._aliases.get(key)
        return self._commands.get(name) if name else None

    @property
    def commands(self) -> list[RegisteredCommand]:
        return list(self._commands.values())

    def __contains__(self, label: object) -> bool:
        return isinstance(label, str) and self.get(label) is not None

    def __len__(self) -> int:
        return len(self._commands)

    # ------------------------------------------------------------------
    def _build(self, instance: object) -> RegisteredCommand:
        descriptor = descriptor_of(type(instance))
        if descriptor.name in self._commands:
            raise RegistrationError(
                f"Command '{descriptor.name}' is already registered", descriptor.name
            )
        return RegisteredCommand(
            descriptor=descriptor,
            registry=build_registry(instance),
            instance=instance,
            dispatcher=self.dispatcher,
            resolver=self.resolver,
        )

    def _bind(self, command: RegisteredCommand) -> set[str]:
        """Bind into the host map; returns the aliases the map accepted."""
        descriptor = command.descriptor
        bound = self.host.command_map.bind(
            descriptor.name,
            command.execute,
            command.complete,
            description=descriptor.description,
            permission=descriptor.permission,
            usage=descriptor.usage,
            aliases=descriptor.aliases,
        )
        if bound is None:
            return set(descriptor.aliases)
        return {alias.lower() for alias in bound}

    @staticmethod
    def _scan(scope: Any) -> Iterable[type]:
        if isinstance(scope, ModuleType):
            return [
                obj
                for obj in vars(scope).values()
                if is_command_type(obj) and obj.__module__ == scope.__name__
            ]
        if inspect.isclass(scope):
            return [obj for obj in vars(scope).values() if is_command_type(obj)]
        if isinstance(scope, Iterable) and not isinstance(scope, (str, bytes)):
            found = []
            for obj in scope:
                if is_command_type(obj):
                    found.append(obj)
                else:
                    logger.warning("Ignoring %r: not a @command type", obj)
            return found
        # Any other object: scan the nested classes of its type.
        return [obj for obj in vars(type(scope)).values() if is_command_type(obj)]
