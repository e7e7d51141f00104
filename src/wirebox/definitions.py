from __future__ import annotations

import functools
import inspect
import string
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias, Union

from wirebox.defaults import NAMESPACE_SEPARATORS
from wirebox.exceptions import InvalidRegistrationError
from wirebox.graph import DeclarativeGraph
from wirebox.introspection import ParameterDescriptor, is_runtime_class, qualified_name

ServiceId: TypeAlias = Union[str, type[Any]]
"""A service id is a string or a class (normalized to its dotted name)."""

_ID_STRIP_CHARACTERS = string.whitespace + NAMESPACE_SEPARATORS

# Values that never make sense as a service definition; kept raw and rejected on resolution.
_INVALID_DEFINITION_TYPES = (bool, int, float, complex, bytes, bytearray, list, tuple, set, frozenset)


def normalize_id(service_id: ServiceId) -> str:
    """Return the canonical string form of a service id.

    Classes map to ``"module.QualName"``. Strings lose surrounding whitespace
    and leading or trailing namespace separators, so ``"Foo"``, ``"\\Foo\\"``
    and ``"  Foo  "`` all name the same entry.

    Args:
        service_id: Raw id passed by the caller.

    Raises:
        InvalidRegistrationError: If the id is not a string or a class, or is
            empty after normalization.

    """
    if is_runtime_class(service_id):
        return qualified_name(service_id)
    if not isinstance(service_id, str):
        msg = f"Service id must be a string or a class, got {service_id!r}."
        raise InvalidRegistrationError(msg)

    normalized = service_id.strip(_ID_STRIP_CHARACTERS)
    if not normalized:
        msg = f"Service id {service_id!r} is empty after normalization."
        raise InvalidRegistrationError(msg)
    return normalized


@dataclass(frozen=True, slots=True)
class ClassRef:
    """Build a class by name or by type, autowiring its constructor.

    ``parameters`` replaces constructor introspection with an explicit
    descriptor table.
    """

    target: str | type[Any]
    parameters: Sequence[ParameterDescriptor] | None = None


@dataclass(frozen=True, slots=True)
class Instance:
    """Use a pre-built object as a template; each resolution returns a shallow copy."""

    obj: Any


@dataclass(frozen=True, slots=True)
class Factory:
    """Call a function to produce a fresh instance on every resolution.

    The container is available through ``current_container()`` while the
    factory runs; with ``pass_container=True`` it is also passed as the first
    positional argument.
    """

    func: Callable[..., Any]
    pass_container: bool = False


@dataclass(frozen=True, slots=True)
class Graph:
    """Interpret a declarative object graph, given as a model or a plain mapping."""

    spec: DeclarativeGraph | Mapping[str, Any]


Definition: TypeAlias = Union[ClassRef, Instance, Factory, Graph]


@dataclass(slots=True)
class ServiceEntry:
    """A registered service: normalized id, definition and shared flag."""

    id: str
    definition: Definition | Any
    shared: bool = False


def coerce_definition(value: Any) -> Definition | Any:
    """Turn a raw value passed to ``Container.set`` into a definition.

    Strings and classes become ``ClassRef``, mappings and graph models become
    ``Graph``, plain functions, lambdas, bound methods and partials become
    ``Factory`` and any other object becomes an ``Instance`` template.
    Scalars, sequences and ``None`` are returned unchanged and rejected when
    the service is resolved.

    Args:
        value: Raw definition.

    """
    if isinstance(value, (ClassRef, Instance, Factory, Graph)):
        if isinstance(value, ClassRef) and isinstance(value.target, str):
            return ClassRef(value.target.strip(_ID_STRIP_CHARACTERS), value.parameters)
        return value
    if value is None or isinstance(value, _INVALID_DEFINITION_TYPES):
        return value
    if isinstance(value, str):
        return ClassRef(value.strip(_ID_STRIP_CHARACTERS))
    if is_runtime_class(value):
        return ClassRef(value)
    if isinstance(value, (Mapping, DeclarativeGraph)):
        return Graph(value)
    if inspect.isfunction(value) or inspect.ismethod(value) or isinstance(value, functools.partial):
        return Factory(value)
    return Instance(value)
