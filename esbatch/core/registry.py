# esbatch/core/registry.py
from __future__ import annotations

from typing import Any, Callable, Dict, List, Type, TypeVar

T = TypeVar("T")

SOURCES = "sources"
MAPPERS = "mappers"


class Registry:
    """
    Named component classes, grouped by kind (record sources, operation mappers).
    Example:
        @register("bulk", kind=SOURCES)
        class BulkFileExtractor(...): ...
    """

    def __init__(self) -> None:
        self._items: Dict[str, Dict[str, Type[Any]]] = {}

    def register(self, kind: str, name: str, cls: Type[Any]) -> None:
        items = self._items.setdefault(kind, {})
        key = name.lower()
        if key in items and items[key] is not cls:
            raise ValueError(f"Registry already has a different {kind} item for '{name}'")
        items[key] = cls

    def get(self, kind: str, name: str) -> Type[Any] | None:
        return self._items.get(kind, {}).get(name.lower())

    def names(self, kind: str) -> List[str]:
        return sorted(self._items.get(kind, {}))

    def create(self, kind: str, name: str, *args: Any, **kwargs: Any) -> Any:
        cls = self.get(kind, name)
        if not cls:
            raise KeyError(f"Unknown {kind} component '{name}'")
        return cls(*args, **kwargs)


_global_registry = Registry()


def register(name: str, kind: str) -> Callable[[Type[T]], Type[T]]:
    def deco(cls: Type[T]) -> Type[T]:
        _global_registry.register(kind, name, cls)
        return cls

    return deco


def get_registry() -> Registry:
    return _global_registry


__all__ = ["Registry", "register", "get_registry", "SOURCES", "MAPPERS"]
