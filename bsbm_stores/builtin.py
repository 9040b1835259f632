"""Built-in store drivers shipped with the harness."""

import importlib
import logging
from pathlib import Path
from typing import Any, List

logger = logging.getLogger(__name__)
_PLUGIN_PACKAGE = f"{__package__}.plugins"


def builtin_drivers() -> List[Any]:
    """
    Return built-in store drivers via dynamic discovery.

    Scans `plugins/` for modules exporting a `PLUGIN` driver instance.
    """
    drivers: List[Any] = []

    plugins_path = Path(__file__).resolve().parent / "plugins"
    if not plugins_path.exists():
        return drivers

    for item in sorted(plugins_path.iterdir()):
        if item.is_dir() and (item / "plugin.py").exists():
            module_name = f"{_PLUGIN_PACKAGE}.{item.name}.plugin"
            try:
                mod = importlib.import_module(module_name)
            except ImportError as exc:
                logger.debug("Skipping store driver %s: %s", module_name, exc)
                continue
            if hasattr(mod, "PLUGIN"):
                drivers.append(mod.PLUGIN)

    return drivers
