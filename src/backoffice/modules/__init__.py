"""Feature modules with auto-discovery."""

import logging
from importlib import import_module
from pathlib import Path

from fastapi import APIRouter


logger = logging.getLogger(__name__)


def discover_modules() -> list[APIRouter]:
    """Collect the routers of all feature modules.

    A module takes part when its package has a ``routes.py`` exposing
    ``router``. Modules without routes (read models, shared repositories)
    are skipped. Import errors propagate so a broken module fails startup.

    Returns:
        Routers in module name order.
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if not path.is_dir() or path.name.startswith("_"):
            continue
        if not (path / "routes.py").is_file():
            continue

        module = import_module(f"{__name__}.{path.name}.routes")
        router = getattr(module, "router", None)
        if isinstance(router, APIRouter):
            routers.append(router)
            logger.info("Loaded module: %s", path.name)

    return routers


def import_models() -> None:
    """Import every module's ``models.py`` so its tables join the metadata."""
    import_module("backoffice.core.permissions.models")

    modules_dir = Path(__file__).parent
    for path in sorted(modules_dir.iterdir()):
        if path.is_dir() and (path / "models.py").is_file():
            import_module(f"{__name__}.{path.name}.models")
