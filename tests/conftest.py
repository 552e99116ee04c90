import pytest

from sancf.core.completion import CompletionProviders
from sancf.core.host import ConsoleSender, Host, SimpleCommandMap, User
from sancf.core.registrar import Registrar
from sancf.core.scheduler import InlineScheduler


@pytest.fixture
def providers():
    p = CompletionProviders()
    p.register("players", lambda: ["Alice", "alex", "Bob"])
    p.register("items", lambda: ["DIAMOND_SWORD", "DIRT", "STONE"])
    return p


@pytest.fixture
def host(providers):
    return Host(
        name="test",
        command_map=SimpleCommandMap(),
        scheduler=InlineScheduler(),
        providers=providers,
    )


@pytest.fixture
def registrar(host):
    return Registrar(host)


@pytest.fixture
def player():
    return User("Alice", ["plugin.give"])


@pytest.fixture
def stranger():
    return User("Mallory")


@pytest.fixture
def console():
    return ConsoleSender()
