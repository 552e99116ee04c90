# -----------------------------
# sancf/__main__.py
# -----------------------------
import argparse
import asyncio

from config.settings import DEFAULT_CONFIG_PATH, Settings
from utils.logger import configure_loguru, level_from_name, setup_logging

from .cli import run


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="sancf", description="SANCF interactive command console")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="YAML settings file")
    parser.add_argument("--user", help="run as an interactive user instead of the console")
    parser.add_argument(
        "--permission",
        action="append",
        default=[],
        help="grant a permission to --user (repeatable, '*' grants all)",
    )
    parser.add_argument("--plugin-dir", help="override the plugin directory")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    args = parse_args(argv)
    settings = Settings.load(args.config)
    if args.plugin_dir:
        settings.plugin_dir = args.plugin_dir
    level = level_from_name(settings.log_level)
    setup_logging(level=level)
    configure_loguru(level)
    try:
        asyncio.run(run(settings, user=args.user, permissions=args.permission))
    except KeyboardInterrupt:
        print("\nSANCF stopped.")


if __name__ == "__main__":
    main()
