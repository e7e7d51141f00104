from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Sequence
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

from wirebox.autowiring import Autowirer, Params, as_params, invoke, split_params
from wirebox.defaults import DEFAULT_MAX_RESOLUTION_DEPTH
from wirebox.definitions import (
    ClassRef,
    Definition,
    Factory,
    Graph,
    Instance,
    ServiceEntry,
    ServiceId,
    coerce_definition,
    normalize_id,
)
from wirebox.exceptions import (
    CircularDependencyError,
    ContainerError,
    ContainerNotBoundError,
    InvalidDefinitionError,
    InvalidRegistrationError,
    ServiceNotFoundError,
)
from wirebox.graph import GraphBuilder
from wirebox.injectable import ServiceProvider
from wirebox.integrations.pydantic_settings import is_pydantic_settings_subclass
from wirebox.introspection import ParameterExtractor, TypeLoader, is_runtime_class, qualified_name
from wirebox.registry import MISSING, Registry

if TYPE_CHECKING:
    from typing_extensions import Self

logger = logging.getLogger(__name__)

_current_container: ContextVar[Container | None] = ContextVar(
    "wirebox_current_container",
    default=None,
)


def current_container() -> Container:
    """Return the container invoking the current factory.

    Factories registered with ``Container.set`` run with their container bound,
    so a factory body can resolve further services:

    .. code-block:: python

        container.set("mailer", lambda: Mailer(current_container().get("transport")))

    Raises:
        ContainerNotBoundError: When called outside a factory invocation.

    """
    container = _current_container.get()
    if container is None:
        raise ContainerNotBoundError
    return container


class Container:
    """Register service definitions and resolve them into instances.

    A service id is a string or a class. Definitions are class references
    (autowired through constructor annotations), instance templates (copied
    on every resolution), factories, or declarative object graphs. Ids that
    are not registered are treated as dotted class names, so any importable
    class can be resolved without registration.

    Shared entries are built once and cached for the lifetime of the container
    or until removed. Resolution depth is bounded, which turns circular
    definitions into a ``CircularDependencyError`` instead of unbounded
    recursion.

    A container is not safe for concurrent mutation; use one container per
    thread or serialize access.
    """

    def __init__(
        self,
        *,
        max_depth: int = DEFAULT_MAX_RESOLUTION_DEPTH,
        autowire_unregistered: bool = True,
    ) -> None:
        """Initialize an empty container.

        Args:
            max_depth: Number of nested ``get`` calls allowed in one
                resolution chain before it is reported as circular.
            autowire_unregistered: Resolve unregistered ids as class names.
                Disable for strict mode, where every id must be registered.

        Examples:
            .. code-block:: python

                container = Container()

                strict_container = Container(autowire_unregistered=False)

        """
        if max_depth < 1:
            msg = f"max_depth must be a positive integer, got {max_depth!r}."
            raise InvalidRegistrationError(msg)

        self._max_depth = max_depth
        self._autowire_unregistered = autowire_unregistered

        self._registry = Registry()
        self._type_loader = TypeLoader()
        self._parameter_extractor = ParameterExtractor()
        self._autowirer = Autowirer(self.get)
        self._graph_builder = GraphBuilder(self.get, self._type_loader)
        self._resolution_stack: list[str] = []

    @property
    def max_depth(self) -> int:
        return self._max_depth

    # region Registration Methods
    def set(
        self,
        service_id: ServiceId,
        definition: Any,
        shared: bool = False,  # noqa: FBT001, FBT002
    ) -> Self:
        """Register a definition under a service id, replacing any previous entry.

        Raw definitions are coerced: strings and classes become ``ClassRef``,
        mappings become ``Graph``, functions become ``Factory`` and any other
        object becomes an ``Instance`` template. Values that cannot be a
        definition (numbers, lists, ``None``) are stored and rejected by
        ``get``.

        Args:
            service_id: String id or class.
            definition: Definition or raw value.
            shared: Cache the first resolved instance for later calls.

        Returns:
            The container, for chaining.

        Raises:
            InvalidRegistrationError: If the id is empty or of the wrong type.

        Examples:
            .. code-block:: python

                container.set("clock", SystemClock).set(Repo, SqlRepo, shared=True)

        """
        key = normalize_id(service_id)
        self._registry.add(ServiceEntry(key, coerce_definition(definition), shared))
        logger.debug("Registered service '%s' (shared=%s)", key, shared)
        return self

    def shared(self, service_id: ServiceId, definition: Any) -> Self:
        """Register a shared definition; see ``set``."""
        return self.set(service_id, definition, shared=True)

    def has(self, service_id: ServiceId) -> bool:
        """Return whether the id is registered."""
        return self._registry.has(normalize_id(service_id))

    def remove(self, service_id: ServiceId) -> None:
        """Remove a registration and its cached shared instance. Unknown ids are ignored."""
        key = normalize_id(service_id)
        self._registry.remove(key)
        logger.debug("Removed service '%s'", key)

    def is_shared(self, service_id: ServiceId) -> bool:
        """Return whether the id is registered as shared; ``False`` when unregistered."""
        entry = self._registry.find(normalize_id(service_id))
        return entry is not None and entry.shared

    def set_shared(self, service_id: ServiceId, shared: bool = True) -> Self:  # noqa: FBT001, FBT002
        """Change the shared flag of a registered id.

        An instance already cached stays cached until the entry is removed or
        the container is torn down.

        Raises:
            ServiceNotFoundError: If the id is not registered.

        """
        key = normalize_id(service_id)
        entry = self._registry.find(key)
        if entry is None:
            raise ServiceNotFoundError(key)
        entry.shared = shared
        return self

    def register(self, provider: ServiceProvider) -> Self:
        """Let a service provider add its registrations to this container.

        Args:
            provider: Object exposing ``register(container)``.

        Returns:
            The container, for chaining.

        """
        provider.register(self)
        logger.debug("Applied service provider %s", type(provider).__qualname__)
        return self

    def teardown(self) -> None:
        """Drop every cached shared instance; registrations are kept."""
        self._registry.clear_shared_instances()

    # endregion Registration Methods

    # region Resolution Methods
    def get(self, service_id: ServiceId, params: Params | Sequence[Any] | None = None) -> Any:
        """Resolve a service id into an instance.

        Args:
            service_id: Registered id, dotted class name or class.
            params: Explicit constructor parameters; ``int`` keys are
                positional, ``str`` keys are named. A sequence is positional.

        Returns:
            The cached shared instance, or a freshly built one.

        Raises:
            ServiceNotFoundError: If the id is neither registered nor loadable.
            CircularDependencyError: If the resolution chain is too deep.
            ContainerError: If the definition, a parameter or a graph is invalid.

        Examples:
            .. code-block:: python

                container.set("greeter", {"class": Greeter, "arguments": [
                    {"type": "literal", "value": "hi"},
                ]})
                greeter = container.get("greeter")

                report = container.get("app.reports.Report", {"title": "Q3"})

        """
        key = normalize_id(service_id)
        explicit = as_params(params)

        if len(self._resolution_stack) >= self._max_depth:
            chain = [*self._resolution_stack, key]
            logger.warning("Resolution depth %d exceeded while resolving '%s'", self._max_depth, key)
            raise CircularDependencyError(chain, self._max_depth)

        self._resolution_stack.append(key)
        try:
            return self._resolve(service_id, key, explicit)
        finally:
            self._resolution_stack.pop()

    def call(
        self,
        target: Callable[..., Any] | tuple[ServiceId, str],
        params: Params | Sequence[Any] | None = None,
    ) -> Any:
        """Invoke a callable with autowired arguments.

        Args:
            target: Function, bound method, callable object, or an
                ``(id, "method")`` pair naming a method of a resolved service.
            params: Explicit parameters, as for ``get``.

        Returns:
            Whatever the callable returns.

        Examples:
            .. code-block:: python

                container.call(lambda repo: repo.count(), {"repo": repo})
                container.call((ReportService, "render"), {"fmt": "pdf"})

        """
        func = self._callable_for(target)
        descriptors = self._parameter_extractor.extract(func)
        values = self._autowirer.resolve_parameters(
            descriptors,
            as_params(params),
            target=getattr(func, "__qualname__", repr(func)),
        )
        return invoke(func, descriptors, values)

    # endregion Resolution Methods

    def _resolve(self, service_id: ServiceId, key: str, explicit: dict[int | str, Any]) -> Any:
        cached = self._registry.find_shared_instance(key)
        if cached is not MISSING:
            logger.debug("Returning shared instance of '%s'", key)
            return cached

        entry = self._registry.find(key)
        if entry is None:
            if not self._autowire_unregistered:
                raise ServiceNotFoundError(key)
            definition: Definition | Any = ClassRef(service_id if is_runtime_class(service_id) else key)
        else:
            definition = entry.definition

        instance = self._build(key, definition, explicit)

        if entry is not None and entry.shared:
            self._registry.cache_shared_instance(key, instance)
            logger.debug("Cached shared instance of '%s'", key)
        elif entry is None and is_pydantic_settings_subclass(type(instance)):
            self._registry.add(ServiceEntry(key, Factory(type(instance)), shared=True))
            self._registry.cache_shared_instance(key, instance)
            logger.info("Registered settings class '%s' as a shared service", key)

        if not is_runtime_class(instance):
            setter = getattr(instance, "set_container", None)
            if callable(setter):
                setter(self)

        return instance

    def _build(self, key: str, definition: Definition | Any, explicit: dict[int | str, Any]) -> Any:
        if isinstance(definition, ClassRef):
            return self._build_class(key, definition, explicit)
        if isinstance(definition, Factory):
            return self._call_factory(definition, explicit)
        if isinstance(definition, Instance):
            return self._copy_instance(key, definition)
        if isinstance(definition, Graph):
            return self._graph_builder.build(definition.spec, explicit)
        raise InvalidDefinitionError(key, definition)

    def _build_class(self, key: str, definition: ClassRef, explicit: dict[int | str, Any]) -> Any:
        target = definition.target
        if isinstance(target, str) and not target:
            raise InvalidDefinitionError(key, target)

        target_key = normalize_id(target)
        # A registered target is an alias, including an entry naming its own id.
        if self._registry.has(target_key):
            return self.get(target_key, explicit)

        if is_runtime_class(target):
            cls = target
        else:
            loaded = self._type_loader.load(target_key)
            if loaded is None:
                raise ServiceNotFoundError(target_key)
            cls = loaded

        if definition.parameters is None and is_pydantic_settings_subclass(cls):
            # Settings fields come from the environment; only explicit named values are passed.
            _, kwargs = split_params(explicit)
            return cls(**kwargs)

        descriptors = (
            tuple(definition.parameters)
            if definition.parameters is not None
            else self._parameter_extractor.extract(cls)
        )
        values = self._autowirer.resolve_parameters(descriptors, explicit, target=qualified_name(cls))
        return invoke(cls, descriptors, values)

    def _call_factory(self, definition: Factory, explicit: dict[int | str, Any]) -> Any:
        args, kwargs = split_params(explicit)
        if definition.pass_container:
            args.insert(0, self)

        token = _current_container.set(self)
        try:
            return definition.func(*args, **kwargs)
        finally:
            _current_container.reset(token)

    def _copy_instance(self, key: str, definition: Instance) -> Any:
        try:
            return copy.copy(definition.obj)
        except (TypeError, copy.Error) as exc:
            msg = f"Instance registered as '{key}' cannot be copied: {exc}"
            raise ContainerError(msg) from exc

    def _callable_for(self, target: Any) -> Callable[..., Any]:
        is_pair = isinstance(target, (tuple, list)) and len(target) == 2  # noqa: PLR2004
        if is_pair and isinstance(target[1], str):
            service_id, method_name = target
            service = self.get(service_id)
            method = getattr(service, method_name, None)
            if not callable(method):
                raise ServiceNotFoundError(
                    f"{normalize_id(service_id)}.{method_name}",
                    f"Service '{normalize_id(service_id)}' has no callable method '{method_name}'.",
                )
            return method

        if not callable(target):
            msg = f"call() target must be callable or an (id, method) pair, got {target!r}."
            raise InvalidRegistrationError(msg)
        return target
