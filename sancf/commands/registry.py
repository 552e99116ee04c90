"""Command metadata and declaration helpers.

A command type is a plain class decorated with :func:`command`. Methods
decorated with :func:`subcommand` become subcommands, :func:`tab_complete`
attaches per-position completion sources, and an ``execute(ctx)`` method, if
present, is the root handler.

Example::

    @command("give", aliases=["g"], permission="plugin.give", allow_console=False)
    class Give:
        def execute(self, ctx):
            ctx.send_usage_message()

        @subcommand("item")
        @tab_complete("sword,shield", "@players")
        def item(self, ctx):
            ctx.send_message(f"&aGiving {ctx.arg(1)}")

Decorating only attaches metadata; nothing is registered until a
:class:`~sancf.core.registrar.Registrar` picks the type up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Optional, Sequence, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from sancf.errors import RegistrationError
from utils.logger import get_logger

if TYPE_CHECKING:
    from sancf.commands.context import InvocationContext

logger = get_logger().getChild("Registry")

Handler = Callable[["InvocationContext"], Any]

COMMAND_ATTR = "__sancf_command__"
SUBCOMMAND_ATTR = "__sancf_subcommand__"
TAB_COMPLETE_ATTR = "__sancf_tab_complete__"
ROOT_HANDLER_NAME = "execute"

PROVIDER_PREFIX = "@"
PLAYERS = "players"
ITEMS = "items"


class CommandDescriptor(BaseModel):
    """Static metadata for one top-level command."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    name: str
    aliases: tuple[str, ...] = ()
    permission: Optional[str] = None
    usage: str = ""
    description: str = ""
    allow_console: bool = True
    run_async: bool = Field(default=False, alias="async")

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return _normalise_label(value)

    @field_validator("aliases", mode="before")
    @classmethod
    def _check_aliases(cls, value: Any, info: ValidationInfo) -> tuple[str, ...]:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        seen: list[str] = []
        for alias in value:
            alias = _normalise_label(alias)
            if alias != info.data.get("name") and alias not in seen:
                seen.append(alias)
        return tuple(seen)

    @field_validator("permission", mode="before")
    @classmethod
    def _check_permission(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @property
    def labels(self) -> tuple[str, ...]:
        """The primary name followed by every alias."""
        return (self.name, *self.aliases)


def _normalise_label(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("command labels must be strings")
    label = value.strip().lower()
    if not label:
        raise ValueError("command labels must not be empty")
    if any(ch.isspace() for ch in label):
        raise ValueError(f"command label {value!r} contains whitespace")
    return label


# ----------------------------------------------------------------------
# Completion sources


@dataclass(frozen=True)
class LiteralSource:
    """A fixed list of suggestions."""

    values: tuple[str, ...]


@dataclass(frozen=True)
class ProviderSource:
    """Suggestions produced at completion time by a named provider."""

    key: str


CompletionSource = Union[LiteralSource, ProviderSource]


def parse_completion_token(token: Union[str, CompletionSource]) -> CompletionSource:
    """Turn a ``@tab_complete`` token into a completion source.

    ``"@players"`` names a provider; anything else is a comma-separated list
    of literal values.
    """
    if isinstance(token, (LiteralSource, ProviderSource)):
        return token
    if not isinstance(token, str):
        raise TypeError(f"Unsupported completion token: {token!r}")
    text = token.strip()
    if text.startswith(PROVIDER_PREFIX) and len(text) > 1:
        return ProviderSource(text[1:].lower())
    values: list[str] = []
    for part in text.split(","):
        part = part.strip()
        if part and part not in values:
            values.append(part)
    return LiteralSource(tuple(values))


# ----------------------------------------------------------------------
# Subcommands


@dataclass(frozen=True)
class SubcommandSpec:
    name: str
    handler: Handler
    permission: Optional[str] = None
    completion_sources: tuple[CompletionSource, ...] = ()
    run_async: Optional[bool] = None

    @property
    def key(self) -> str:
        return self.name.lower()

    def source_at(self, position: int) -> Optional[CompletionSource]:
        if 0 <= position < len(self.completion_sources):
            return self.completion_sources[position]
        return None

    def runs_async(self, descriptor: CommandDescriptor) -> bool:
        """Execution mode, inheriting the descriptor's when unset."""
        if self.run_async is None:
            return descriptor.run_async
        return self.run_async


class SubcommandRegistry:
    """Subcommands of one command, keyed by lower-cased name."""

    def __init__(self, root_handler: Optional[Handler] = None) -> None:
        self.root_handler = root_handler
        self._specs: dict[str, SubcommandSpec] = {}

    def add(self, spec: SubcommandSpec) -> None:
        """Register ``spec``; a later spec with the same name replaces the earlier one."""
        previous = self._specs.get(spec.key)
        if previous is not None:
            logger.warning(
                "Subcommand %r redefined; %s replaces %s",
                spec.name,
                _handler_name(spec.handler),
                _handler_name(previous.handler),
            )
        self._specs[spec.key] = spec

    def get(self, name: Optional[str]) -> Optional[SubcommandSpec]:
        if not name:
            return None
        return self._specs.get(name.lower())

    def names(self) -> list[str]:
        return [spec.name for spec in self._specs.values()]

    def __iter__(self) -> Iterator[SubcommandSpec]:
        return iter(list(self._specs.values()))

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._specs


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


# ----------------------------------------------------------------------
# Decorators


def command(
    name: str,
    *,
    aliases: Sequence[str] = (),
    permission: Optional[str] = None,
    usage: str = "",
    description: str = "",
    allow_console: bool = True,
    run_async: bool = False,
):
    """Class decorator declaring a root command."""
    try:
        descriptor = CommandDescriptor(
            name=name,
            aliases=tuple(aliases),
            permission=permission,
            usage=usage,
            description=description,
            allow_console=allow_console,
            run_async=run_async,
        )
    except ValidationError as e:
        raise RegistrationError(f"Invalid command metadata: {e}", str(name)) from e

    def decorator(cls: type) -> type:
        if not isinstance(cls, type):
            raise TypeError("@command can only decorate classes")
        setattr(cls, COMMAND_ATTR, descriptor)
        return cls

    return decorator


def subcommand(name: str, permission: Optional[str] = None, *, run_async: Optional[bool] = None):
    """Method decorator declaring a subcommand handler."""
    if not isinstance(name, str) or not name.strip():
        raise ValueError("subcommand name must be a non-empty string")

    def decorator(func: Callable) -> Callable:
        setattr(
            func,
            SUBCOMMAND_ATTR,
            {"name": name.strip(), "permission": (permission or None), "run_async": run_async},
        )
        return func

    return decorator


def tab_complete(*tokens: Union[str, CompletionSource]):
    """Attach completion sources, one per subcommand-relative argument position."""
    sources = tuple(parse_completion_token(t) for t in tokens)

    def decorator(func: Callable) -> Callable:
        setattr(func, TAB_COMPLETE_ATTR, sources)
        return func

    return decorator


# ----------------------------------------------------------------------
# Introspection used by the registrar


def is_command_type(obj: Any) -> bool:
    return isinstance(obj, type) and isinstance(
        obj.__dict__.get(COMMAND_ATTR), CommandDescriptor
    )


def descriptor_of(cls: type) -> CommandDescriptor:
    descriptor = getattr(cls, COMMAND_ATTR, None)
    if not isinstance(descriptor, CommandDescriptor):
        raise RegistrationError(f"{cls.__qualname__} is not decorated with @command")
    return descriptor


def _iter_declared_functions(cls: type) -> Iterable[tuple[str, Any]]:
    found: dict[str, Any] = {}
    # Base classes first; an override in a subclass replaces (or removes) the
    # base declaration.
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for attr, value in vars(klass).items():
            if isinstance(value, (staticmethod, classmethod)):
                value = value.__func__
            if callable(value) and hasattr(value, SUBCOMMAND_ATTR):
                found[attr] = value
            else:
                found.pop(attr, None)
    return found.items()


def build_registry(instance: object) -> SubcommandRegistry:
    """Collect the root handler and decorated subcommands of ``instance``."""
    cls = type(instance)
    root = getattr(instance, ROOT_HANDLER_NAME, None)
    # An ``execute`` decorated with @subcommand is only a subcommand.
    if not callable(root) or hasattr(root, SUBCOMMAND_ATTR):
        root = None
    registry = SubcommandRegistry(root)
    for attr, func in _iter_declared_functions(cls):
        bound = getattr(instance, attr)
        meta = getattr(func, SUBCOMMAND_ATTR)
        registry.add(
            SubcommandSpec(
                name=meta["name"],
                handler=bound,
                permission=meta["permission"],
                completion_sources=getattr(func, TAB_COMPLETE_ATTR, ()),
                run_async=meta["run_async"],
            )
        )
    return registry
