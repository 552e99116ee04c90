"""Tab completion for registered commands.

Suggestions come either from the subcommand names (first token) or from the
completion sources declared with ``@tab_complete`` on the matched
subcommand. Dynamic sources are looked up in a :class:`CompletionProviders`
registry that the host fills in (online players, item catalogue, ...).
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence

from sancf.commands.registry import (
    CommandDescriptor,
    CompletionSource,
    LiteralSource,
    ProviderSource,
    SubcommandRegistry,
)
from utils.logger import get_logger

logger = get_logger().getChild("Completion")

Provider = Callable[[], Iterable[str]]


def filter_prefix(candidates: Iterable[str], prefix: str) -> list[str]:
    """Keep candidates starting with ``prefix``, ignoring case, in order."""
    needle = prefix.lower()
    return [c for c in candidates if c.lower().startswith(needle)]


class CompletionProviders:
    """Named suppliers of dynamic completion values.

    Keys are case-insensitive. The well-known keys are ``players`` (names of
    online actors) and ``items`` (the host's item catalogue).
    """

    def __init__(self, providers: Optional[dict[str, Provider]] = None) -> None:
        self._providers: dict[str, Provider] = {}
        for key, provider in (providers or {}).items():
            self.register(key, provider)

    def register(self, key: str, provider: Provider) -> Provider:
        self._providers[key.lower()] = provider
        return provider

    def provider(self, key: str):
        """Decorator form of :meth:`register`."""

        def decorator(func: Provider) -> Provider:
            return self.register(key, func)

        return decorator

    def get(self, key: str) -> Optional[Provider]:
        return self._providers.get(key.lower())

    def keys(self) -> list[str]:
        return list(self._providers)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._providers


class CompletionResolver:
    def __init__(self, providers: Optional[CompletionProviders] = None) -> None:
        self.providers = providers or CompletionProviders()

    def complete(
        self,
        descriptor: CommandDescriptor,
        registry: SubcommandRegistry,
        args: Sequence[str],
    ) -> list[str]:
        if not args:
            return []
        if len(args) == 1:
            return filter_prefix(registry.names(), args[0])

        spec = registry.get(args[0])
        if spec is None:
            return []
        source = spec.source_at(len(args) - 2)
        if source is None:
            return []
        return self.resolve(descriptor, source, args[-1])

    def resolve(
        self, descriptor: CommandDescriptor, source: CompletionSource, prefix: str
    ) -> list[str]:
        if isinstance(source, LiteralSource):
            return filter_prefix(source.values, prefix)
        if isinstance(source, ProviderSource):
            return self._from_provider(descriptor, source.key, prefix)
        return []

    def _from_provider(self, descriptor: CommandDescriptor, key: str, prefix: str) -> list[str]:
        provider = self.providers.get(key)
        if provider is None:
            logger.debug("No completion provider '%s' for /%s", key, descriptor.name)
            return []
        try:
            values = [str(v) for v in provider()]
        except Exception:
            logger.exception("Completion provider '%s' failed for /%s", key, descriptor.name)
            return []
        return filter_prefix(values, prefix)
