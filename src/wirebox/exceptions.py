from __future__ import annotations

from collections.abc import Sequence
from typing import Any


class ContainerError(Exception):
    """Represent a base class for all wirebox failures.

    Catch this type when you want to handle any resolution or registration
    error path without matching each concrete exception class individually.
    """


class ServiceNotFoundError(ContainerError):
    """Signal that a service id cannot be resolved to anything.

    Raised by ``Container.get`` when the id is neither registered nor the name
    of a loadable class, and by ``Container.set_shared`` for unregistered ids.

    Typical fixes include registering the id with ``Container.set`` or passing
    a fully qualified class name such as ``"package.module.ClassName"``.
    """

    def __init__(self, service_id: str, message: str | None = None) -> None:
        self.service_id = service_id
        super().__init__(message or f"Service '{service_id}' was not found in the container.")


class InvalidRegistrationError(ContainerError):
    """Signal invalid arguments passed to a registration or invocation method.

    Raised when a service id is empty after normalization or is neither a
    string nor a class, when ``call`` receives a non-callable target, when
    explicit parameters (or a nested seed inside them) are neither a mapping
    nor a sequence, or when the container is configured with a non-positive
    ``max_depth``.
    """


class InvalidDefinitionError(ContainerError):
    """Signal a registered definition of an unsupported kind.

    Raised during resolution when the stored definition is not a class
    reference, instance, factory or declarative graph, for example an integer
    or a list.
    """

    def __init__(self, service_id: str, definition: Any) -> None:
        self.service_id = service_id
        self.definition = definition
        super().__init__(
            f"Service '{service_id}' has an unsupported definition of type "
            f"'{type(definition).__name__}'.",
        )


class MissingParameterError(ContainerError):
    """Signal a parameter that cannot be satisfied by autowiring.

    Raised when a parameter has no explicit value, no resolvable class type
    and no default value, or when a positional explicit value points past the
    last parameter.

    Typical fixes include passing the value explicitly
    (``container.get("id", {"name": value})``) or giving the parameter a
    default.
    """

    def __init__(self, target: str, parameter: str | int) -> None:
        self.target = target
        self.parameter = parameter
        if isinstance(parameter, int):
            message = f"Positional parameter {parameter} is out of range for '{target}'."
        else:
            message = f"Parameter '{parameter}' of '{target}' was not supplied and has no default."
        super().__init__(message)


class InvalidGraphError(ContainerError):
    """Signal a malformed declarative object graph.

    ``position`` points at the offending entry, for example
    ``"calls[1].arguments[0]"``, or is empty for graph-level errors such as a
    missing ``class`` key.
    """

    def __init__(self, message: str, position: str = "") -> None:
        self.position = position
        super().__init__(f"{message} (at {position})" if position else message)


class CircularDependencyError(ContainerError):
    """Signal that a resolution chain exceeded the configured depth.

    ``chain`` holds the service ids in resolution order, ending with the id
    whose resolution tripped the guard.
    """

    def __init__(self, chain: Sequence[str], max_depth: int) -> None:
        self.chain = list(chain)
        self.max_depth = max_depth
        head = " -> ".join(self.chain[:5])
        super().__init__(
            f"Circular dependency detected: resolution depth exceeded {max_depth} "
            f"while resolving '{self.chain[-1]}' (chain starts {head} -> ...).",
        )


class ContainerNotBoundError(ContainerError):
    """Signal use of ``current_container()`` outside a factory invocation."""

    def __init__(self) -> None:
        super().__init__("No container is bound; current_container() is only available inside factories.")
