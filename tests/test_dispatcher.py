import threading
import time

import pytest
from loguru import logger

from command_dispatcher import (
    CONSOLE_DENIED_MESSAGE,
    INVALID_COMMAND_MESSAGE,
    NO_PERMISSION_MESSAGE,
    NO_SUBCOMMAND_PERMISSION_MESSAGE,
    Dispatcher,
)
from sancf import command, subcommand
from sancf.commands.context import translate_colors
from sancf.commands.registry import build_registry, descriptor_of
from sancf.core.host import ConsoleSender, User
from sancf.core.scheduler import InlineScheduler, ThreadPoolScheduler
from tests.sample_commands import Give, Info


def _prepare(cls):
    instance = cls()
    return instance, descriptor_of(cls), build_registry(instance)


@pytest.fixture
def loguru_messages():
    messages: list[str] = []
    sink_id = logger.add(lambda m: messages.append(str(m)), format="{message}", level="ERROR")
    yield messages
    logger.remove(sink_id)


def test_console_blocked_when_not_allowed():
    dispatcher = Dispatcher()
    instance, descriptor, registry = _prepare(Give)
    console = ConsoleSender()

    for args in ([], ["item", "sword"], ["unknown"]):
        assert dispatcher.dispatch(descriptor, registry, console, args) is True

    assert instance.calls == []
    assert console.messages == [translate_colors(CONSOLE_DENIED_MESSAGE)] * 3


def test_console_allowed_when_flag_set():
    dispatcher = Dispatcher()
    instance, descriptor, registry = _prepare(Info)
    console = ConsoleSender()
    assert dispatcher.dispatch(descriptor, registry, console, ["version"]) is True
    assert instance.calls == ["version"]


@pytest.mark.parametrize("args", [[], ["item", "sword"], ["secret"], ["other"]])
def test_missing_permission_sends_single_denial(args):
    dispatcher = Dispatcher()
    instance, descriptor, registry = _prepare(Give)
    stranger = User("Mallory")

    assert dispatcher.dispatch(descriptor, registry, stranger, args) is True
    assert instance.calls == []
    assert stranger.messages == [translate_colors(NO_PERMISSION_MESSAGE)]


@pytest.mark.parametrize("token", ["Item", "ITEM", "item", "iTeM"])
def test_subcommand_lookup_is_case_insensitive(token):
    dispatcher = Dispatcher()
    instance, descriptor, registry = _prepare(Give)
    player = User("Alice", ["plugin.give"])

    assert dispatcher.dispatch(descriptor, registry, player, [token, "sword"]) is True
    assert instance.calls == [("item", (token, "sword"))]


def test_subcommand_permission_does_not_fall_through():
    dispatcher = Dispatcher()
    instance, descriptor, registry = _prepare(Give)
    player = User("Alice", ["plugin.give"])

    assert dispatcher.dispatch(descriptor, registry, player, ["secret"]) is True
    assert instance.calls == []
    assert player.messages == [translate_colors(NO_SUBCOMMAND_PERMISSION_MESSAGE)]

    player.permissions.add("plugin.give.secret")
    dispatcher.dispatch(descriptor, registry, player, ["SECRET"])
    assert instance.calls == [("secret", ("SECRET",))]


def test_root_handler_for_no_args_and_unknown_subcommand():
    dispatcher = Dispatcher()
    instance, descriptor, registry = _prepare(Give)
    player = User("Alice", ["plugin.give"])

    dispatcher.dispatch(descriptor, registry, player, [])
    dispatcher.dispatch(descriptor, registry, player, ["unknown", "x"])
    assert instance.calls == [("root", ()), ("root", ("unknown", "x"))]
    assert player.messages == []


def test_invalid_command_without_root_handler():
    dispatcher = Dispatcher()
    instance, descriptor, registry = _prepare(Info)
    user = User("Bob")

    assert dispatcher.dispatch(descriptor, registry, user, ["nope"]) is True
    assert dispatcher.dispatch(descriptor, registry, user, []) is True
    assert instance.calls == []
    assert user.messages == [translate_colors(INVALID_COMMAND_MESSAGE)] * 2


def test_handler_error_is_logged_and_swallowed(loguru_messages):
    @command("boom")
    class Boom:
        def execute(self, ctx):
            raise RuntimeError("kaboom")

    dispatcher = Dispatcher()
    _, descriptor, registry = _prepare(Boom)
    user = User("Bob")

    assert dispatcher.dispatch(descriptor, registry, user, []) is True
    assert any("/boom" in m for m in loguru_messages)
    assert user.messages == []


def test_context_carries_label_and_descriptor():
    seen = []

    @command("where", aliases=["w"])
    class Where:
        def execute(self, ctx):
            seen.append((ctx.label, ctx.command.name))

    dispatcher = Dispatcher()
    _, descriptor, registry = _prepare(Where)
    dispatcher.dispatch(descriptor, registry, User("a"), [], label="w")
    dispatcher.dispatch(descriptor, registry, User("a"), [])
    assert seen == [("w", "where"), ("where", "where")]


def test_async_dispatch_does_not_block_caller():
    started = threading.Event()
    release = threading.Event()
    finished = threading.Event()

    @command("slow", run_async=True)
    class Slow:
        def execute(self, ctx):
            started.set()
            release.wait(timeout=5)
            finished.set()

    with ThreadPoolScheduler(max_workers=1) as scheduler:
        dispatcher = Dispatcher(scheduler)
        _, descriptor, registry = _prepare(Slow)

        begin = time.monotonic()
        assert dispatcher.dispatch(descriptor, registry, User("a"), []) is True
        assert time.monotonic() - begin < 1.0
        assert started.wait(timeout=5)
        assert not finished.is_set()
        release.set()
    assert finished.is_set()


def test_subcommand_async_override_runs_inline():
    calls = []

    class Recorder:
        def __init__(self):
            self.submitted = 0

        def run_async(self, fn):
            self.submitted += 1
            fn()

    @command("mixed", run_async=True)
    class Mixed:
        @subcommand("now", run_async=False)
        def now(self, ctx):
            calls.append("now")

        @subcommand("later")
        def later(self, ctx):
            calls.append("later")

    scheduler = Recorder()
    dispatcher = Dispatcher(scheduler)
    _, descriptor, registry = _prepare(Mixed)
    dispatcher.dispatch(descriptor, registry, User("a"), ["now"])
    assert scheduler.submitted == 0
    dispatcher.dispatch(descriptor, registry, User("a"), ["later"])
    assert scheduler.submitted == 1
    assert calls == ["now", "later"]


def test_async_handler_error_is_logged(loguru_messages):
    @command("fail", run_async=True)
    class Fail:
        def execute(self, ctx):
            raise ValueError("bad")

    dispatcher = Dispatcher(InlineScheduler())
    _, descriptor, registry = _prepare(Fail)
    assert dispatcher.dispatch(descriptor, registry, User("a"), []) is True
    assert any("/fail" in m for m in loguru_messages)


def test_scheduler_rejection_is_handled(loguru_messages):
    class Closed:
        def run_async(self, fn):
            raise RuntimeError("cannot schedule new futures after shutdown")

    @command("late", run_async=True)
    class Late:
        def execute(self, ctx):
            raise AssertionError("must not run")

    dispatcher = Dispatcher(Closed())
    _, descriptor, registry = _prepare(Late)
    assert dispatcher.dispatch(descriptor, registry, User("a"), []) is True
    assert any("schedule" in m for m in loguru_messages)


def test_execute_subcommand_does_not_answer_bare_invocation():
    @command("job")
    class Job:
        @subcommand("run")
        def execute(self, ctx):
            ctx.send_message("ran")

    dispatcher = Dispatcher()
    _, descriptor, registry = _prepare(Job)
    user = User("a")
    dispatcher.dispatch(descriptor, registry, user, [])
    dispatcher.dispatch(descriptor, registry, user, ["run"])
    assert user.messages == [translate_colors(INVALID_COMMAND_MESSAGE), "ran"]


def test_host_colour_characters_reach_handlers():
    @command("paint")
    class Paint:
        def execute(self, ctx):
            ctx.send_message("%aDone")

    dispatcher = Dispatcher(color_marker="%", color_char="^")
    _, descriptor, registry = _prepare(Paint)
    user = User("a")
    dispatcher.dispatch(descriptor, registry, user, [])
    assert user.messages == ["^aDone"]

    denied = User("c")
    _, give_descriptor, give_registry = _prepare(Give)
    dispatcher.dispatch(give_descriptor, give_registry, denied, [])
    assert denied.messages == [NO_PERMISSION_MESSAGE.replace("&", "^")]
