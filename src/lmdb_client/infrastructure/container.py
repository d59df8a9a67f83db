"""Dependency injection container.

Ports are registered either as a ready instance or as a factory taking
the container. Factories run on first :meth:`Container.resolve` and the
result is kept until the registration is replaced or cleared.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from lmdb_client.ports.outbound.storage_engine import StorageEngine

T = TypeVar("T")

Factory = Callable[["Container"], Any]


class Container:
    """Lazily built registry of port implementations."""

    def __init__(self) -> None:
        self._factories: dict[type, Factory] = {}
        self._built: dict[type, Any] = {}

    def register_singleton(self, interface: type[T], instance: T) -> None:
        """Bind ``interface`` to an already built ``instance``."""
        self._factories.pop(interface, None)
        self._built[interface] = instance

    def register_factory(self, interface: type[T], factory: Callable[[Container], T]) -> None:
        """
        Bind ``interface`` to ``factory``.

        Any instance already built for ``interface`` is dropped, so the next
        resolve runs the new factory.
        """
        self._factories[interface] = factory
        self._built.pop(interface, None)

    def resolve(self, interface: type[T]) -> T:
        """
        Return the implementation bound to ``interface``.

        Raises:
            KeyError: If nothing is bound to ``interface``
        """
        if interface in self._built:
            return self._built[interface]

        factory = self._factories.get(interface)
        if factory is None:
            raise KeyError(f"Nothing registered for {interface.__name__}")
        instance = self._built[interface] = factory(self)
        return instance

    def has(self, interface: type) -> bool:
        return interface in self._built or interface in self._factories

    def clear(self) -> None:
        self._factories.clear()
        self._built.clear()


def _py_lmdb_engine(_: Container) -> StorageEngine:
    from lmdb_client.adapters.outbound.py_lmdb_engine import PyLmdbEngine

    return PyLmdbEngine()


def register_defaults(container: Container) -> Container:
    """Bind the production adapters on ``container``."""
    container.register_factory(StorageEngine, _py_lmdb_engine)
    return container


_container: Container | None = None


def get_container() -> Container:
    """Return the process-wide container, wired with the default adapters."""
    global _container
    if _container is None:
        _container = register_defaults(Container())
    return _container


def reset_container() -> None:
    """Drop the process-wide container; the next access rebuilds it."""
    global _container
    if _container is not None:
        _container.clear()
    _container = None
