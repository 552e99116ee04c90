# -----------------------------
# sancf/cli.py
# -----------------------------
import asyncio
import atexit
import os
import platform
import sys
from typing import Optional, Sequence

from config.settings import Settings
from sancf.core.completion import CompletionProviders
from sancf.core.host import ConsoleSender, Host, SimpleCommandMap, User
from sancf.core.registrar import Registrar
from sancf.core.scheduler import ThreadPoolScheduler
from sancf.plugins import load_plugins
from utils.logger import get_logger

try:
    import readline
except ImportError:  # pragma: no cover - not available on Windows
    readline = None

logger = get_logger().getChild("CLI")

HISTORY_FILE = "~/.sancf_cli_history"


def build_host(settings: Settings, sender, scheduler) -> Host:
    providers = CompletionProviders()
    providers.register("players", lambda: [sender.name])
    providers.register("items", lambda: list(settings.completion_items))
    return Host(
        name="sancf-cli",
        command_map=SimpleCommandMap(),
        scheduler=scheduler,
        providers=providers,
        color_marker=settings.color_marker,
        color_char=settings.native_color_char,
    )


def help_text(registrar: Registrar) -> str:
    lines = []
    for cmd in sorted(registrar.commands, key=lambda c: c.name):
        d = cmd.descriptor
        aliases = f" ({', '.join(d.aliases)})" if d.aliases else ""
        lines.append(f"  {d.name}{aliases}  {d.usage}  {d.description}".rstrip())
    return "\n".join(lines) if lines else "  no commands registered"


def _setup_readline(command_map: SimpleCommandMap, sender) -> None:
    if readline is None:
        return

    def completer(text: str, state: int) -> Optional[str]:
        line = readline.get_line_buffer()[: readline.get_endidx()]
        matches = command_map.complete_line(sender, line)
        return matches[state] if state < len(matches) else None

    readline.set_completer(completer)
    readline.set_completer_delims(" ")
    readline.parse_and_bind("tab: complete")

    histfile = os.path.expanduser(HISTORY_FILE)
    try:
        readline.read_history_file(histfile)
    except (FileNotFoundError, OSError):
        pass
    atexit.register(lambda: readline.write_history_file(histfile))


async def run(
    settings: Optional[Settings] = None,
    user: Optional[str] = None,
    permissions: Sequence[str] = (),
) -> None:
    settings = settings or Settings.load()
    color = sys.stdout.isatty()
    native = settings.native_color_char
    if user:
        sender = User(user, permissions, stream=sys.stdout, color=color, color_char=native)
    else:
        sender = ConsoleSender(color=color, color_char=native)

    scheduler = ThreadPoolScheduler(max_workers=settings.worker_threads)
    host = build_host(settings, sender, scheduler)
    registrar = Registrar(host)
    load_plugins(registrar, settings.plugin_dir, settings.extra_plugin_dirs)
    if sys.stdin.isatty():
        _setup_readline(host.command_map, sender)

    print(f"SANCF CLI (Python {platform.python_version()})")
    print(f"Sender: {sender.name}, {len(registrar)} command(s) loaded\n")
    print("Type 'help' for commands. Type 'exit' to quit.\n")

    try:
        while True:
            try:
                line = await asyncio.to_thread(input, settings.prompt)
            except EOFError:
                print("Exiting SANCF...")
                break
            except KeyboardInterrupt:
                print("\nInterrupted. Type 'exit' to quit.")
                continue

            text = line.strip()
            if not text:
                continue
            if text == "exit":
                print("Exiting SANCF...")
                break
            if text == "help":
                print(help_text(registrar))
                continue

            try:
                if not host.command_map.dispatch_line(sender, text):
                    print(f"Unknown command: {text.split()[0]}")
            except Exception as e:
                logger.error(f"CLI error: {e}")
                print(f"Error: {e}")
    finally:
        registrar.unregister_all()
        scheduler.shutdown(wait=True)
