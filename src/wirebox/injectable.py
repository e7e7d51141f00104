from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing_extensions import Self

    from wirebox.container import Container


@runtime_checkable
class Injectable(Protocol):
    """Objects that want a reference to the container that resolved them.

    Detection is structural: any resolved instance with a callable
    ``set_container`` attribute receives the container after it is cached and
    before it is returned. Subclassing this protocol is optional.
    """

    def set_container(self, container: Container) -> Any: ...


class InjectableMixin:
    """Default ``Injectable`` implementation storing the container on the instance."""

    _container: Container | None = None

    def set_container(self, container: Container) -> Self:
        self._container = container
        return self

    @property
    def container(self) -> Container | None:
        """Container that resolved this instance, ``None`` when built by hand."""
        return self._container


@runtime_checkable
class ServiceProvider(Protocol):
    """Group related registrations.

    ``Container.register(provider)`` calls ``provider.register(container)``
    once; providers only issue ``set``/``shared`` calls.
    """

    def register(self, container: Container) -> Any: ...
