"""Backend registry for catalog storage adapters.

Backends register themselves with the ``register_backend`` decorator when
their module is imported; ``load_backends()`` imports every public module of
this package so the registry is complete before a catalog is built.

Example:
    @register_backend("relational")
    class RelationalCatalog(Catalog):
        ...
"""

import importlib
import pkgutil
from typing import Dict, List, Type

from infrastructure.logging import get_module_logger
from modules.catalog.backends.base import Catalog

logger = get_module_logger()

_discovered: Dict[str, Type[Catalog]] = {}


def register_backend(name: str):
    """Register a Catalog implementation under a backend name.

    Args:
        name: Unique backend identifier (e.g., "graph", "relational", "document")

    Returns:
        Decorator function

    Raises:
        TypeError: If the decorated object is not a Catalog subclass
        RuntimeError: If a backend is already registered under the name
    """

    def decorator(obj):
        if not isinstance(obj, type):
            raise TypeError("register_backend decorator must be applied to a class")

        if not issubclass(obj, Catalog):
            raise TypeError(f"Backend must subclass Catalog: {name}, got {obj}")

        if name in _discovered:
            raise RuntimeError(f"Backend already registered with name: {name}")

        obj.name = name
        _discovered[name] = obj
        logger.debug("catalog_backend_discovered", backend=name, class_name=obj.__name__)
        return obj

    return decorator


def load_backends() -> List[str]:
    """Import every backend module (skips private and ``base``).

    Returns:
        Names of the registered backends
    """
    for module_info in pkgutil.iter_modules(__path__):
        modname = module_info.name
        if modname.startswith("_") or modname == "base":
            continue
        importlib.import_module(f"{__name__}.{modname}")
    return available_backends()


def get_backend_class(name: str) -> Type[Catalog]:
    """Look up a registered backend class.

    Raises:
        ValueError: If no backend is registered under the name
    """
    try:
        return _discovered[name]
    except KeyError as e:
        raise ValueError(
            f"Unknown catalog backend: {name}. Supported: {', '.join(available_backends())}"
        ) from e


def available_backends() -> List[str]:
    return sorted(_discovered)


def unregister_backend(name: str) -> None:
    """Remove a registered backend (for testing only)."""
    _discovered.pop(name, None)


__all__ = [
    "Catalog",
    "register_backend",
    "load_backends",
    "get_backend_class",
    "available_backends",
    "unregister_backend",
]
