"""Load command plugins from directories.

Every ``.py`` file (or package with ``__init__.py``) in a plugin directory is
imported. If the module defines ``register(registrar)`` it is called;
otherwise the module's ``@command`` types are registered with
:meth:`Registrar.register_all`. Files starting with ``_`` are skipped.
"""

import importlib.util
import sys
from collections.abc import Iterator, Sequence
from pathlib import Path
from types import ModuleType

from sancf.core.registrar import Registrar
from utils.logger import get_logger

logger = get_logger().getChild("plugins")

MODULE_PREFIX = "sancf_plugins"


def _plugin_entries(directory: Path) -> Iterator[tuple[str, Path]]:
    """Yield ``(plugin name, source file)`` pairs in name order."""
    for item in sorted(directory.iterdir()):
        if item.name.startswith("_"):
            continue
        if item.is_file() and item.suffix == ".py":
            yield item.stem, item
        elif item.is_dir() and (item / "__init__.py").is_file():
            yield item.name, item / "__init__.py"


def _import_plugin(name: str, path: Path) -> ModuleType | None:
    qualified = f"{MODULE_PREFIX}.{name}"
    spec = importlib.util.spec_from_file_location(qualified, path)
    if spec is None or spec.loader is None:
        logger.warning("Cannot create spec for %s", path)
        return None
    module = importlib.util.module_from_spec(spec)
    sys.modules[qualified] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(qualified, None)
        logger.warning("Failed loading plugin %s: %s", path, exc)
        return None
    return module


def _register_plugin(registrar: Registrar, name: str, module: ModuleType) -> bool:
    """Register the commands of ``module``; ``False`` if its hook failed."""
    before = len(registrar)
    hook = getattr(module, "register", None)
    if callable(hook):
        try:
            hook(registrar)
        except Exception as exc:
            logger.warning("Plugin %s raised during register: %s", name, exc)
            return False
    else:
        registrar.register_all(module)
    logger.info("Plugin %s registered %d command(s)", name, len(registrar) - before)
    return True


def load_plugins(
    registrar: Registrar, plugin_dir: str, extra_dirs: Sequence[str] | None = None
) -> list[ModuleType]:
    """Discover and load plugins from *plugin_dir* and *extra_dirs*.

    Returns the modules whose commands were registered. A plugin that fails
    to import or whose ``register`` hook raises is logged and left out.
    """
    loaded: list[ModuleType] = []
    for raw in [plugin_dir, *(extra_dirs or [])]:
        directory = Path(raw).expanduser()
        if not directory.is_dir():
            logger.info("Plugin directory %s does not exist", directory)
            continue
        for name, path in _plugin_entries(directory):
            module = _import_plugin(name, path)
            if module is not None and _register_plugin(registrar, name, module):
                loaded.append(module)
    return loaded
