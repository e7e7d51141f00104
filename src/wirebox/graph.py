"""Declarative object graphs.

A declarative graph describes one constructor call followed by method calls
and property assignments, using data only:

.. code-block:: python

    {
        "class": "app.mail.Mailer",
        "arguments": [
            {"type": "reference", "id": "app.mail.Transport", "arguments": [
                {"type": "literal", "value": "smtp.example.com"},
            ]},
            {"type": "literal", "value": "noreply@example.com"},
        ],
        "calls": [
            {"method": "set_retries", "arguments": [{"type": "literal", "value": 3}]},
        ],
        "properties": [
            {"name": "timeout", "value": {"type": "literal", "value": 30}},
        ],
    }

Graphs may be given as such mappings or built from the dataclasses below;
``GraphBuilder`` interprets both.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeAlias, Union

from wirebox.autowiring import split_params
from wirebox.exceptions import InvalidGraphError, ServiceNotFoundError
from wirebox.introspection import TypeLoader, is_runtime_class

logger = logging.getLogger(__name__)

LITERAL_TAGS = frozenset({"literal", "parameter"})
REFERENCE_TAGS = frozenset({"reference", "class"})


@dataclass(frozen=True, slots=True)
class LiteralArgument:
    """Pass ``value`` verbatim. The value is mandatory and must not be empty."""

    value: Any = None


@dataclass(frozen=True, slots=True)
class ReferenceArgument:
    """Resolve ``target`` from the container, seeded with the built ``arguments``."""

    target: str | type[Any] | None
    arguments: tuple[ArgumentSpec, ...] = ()


ArgumentSpec: TypeAlias = Union[LiteralArgument, ReferenceArgument]


@dataclass(frozen=True, slots=True)
class MethodCall:
    method: str | None
    arguments: tuple[ArgumentSpec, ...] = ()


@dataclass(frozen=True, slots=True)
class PropertyAssignment:
    name: str | None
    value: ArgumentSpec | None = None


@dataclass(frozen=True, slots=True)
class DeclarativeGraph:
    """Data-only description of how to build and configure one object."""

    class_name: str | type[Any] | None
    arguments: tuple[ArgumentSpec, ...] = ()
    calls: tuple[MethodCall, ...] = ()
    properties: tuple[PropertyAssignment, ...] = ()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> DeclarativeGraph:
        """Parse the mapping form of a graph.

        Only the shape is checked here; required values (class, method and
        property names, literal values) are checked by ``GraphBuilder``.

        Args:
            mapping: Graph with ``class``, ``arguments``, ``calls`` and
                ``properties`` keys.

        Raises:
            InvalidGraphError: If an entry has the wrong shape or an unknown
                argument type.

        """
        if not isinstance(mapping, Mapping):
            msg = f"Graph definition must be a mapping, got {type(mapping).__name__}"
            raise InvalidGraphError(msg)

        return cls(
            class_name=mapping.get("class"),
            arguments=_parse_arguments(mapping.get("arguments"), "arguments"),
            calls=tuple(
                _parse_call(call, f"calls[{index}]")
                for index, call in enumerate(_as_list(mapping.get("calls"), "calls"))
            ),
            properties=tuple(
                _parse_property(prop, f"properties[{index}]")
                for index, prop in enumerate(_as_list(mapping.get("properties"), "properties"))
            ),
        )


def _as_list(value: Any, position: str) -> Sequence[Any]:
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        msg = "Expected a list"
        raise InvalidGraphError(msg, position)
    return value


def _parse_arguments(value: Any, position: str) -> tuple[ArgumentSpec, ...]:
    return tuple(
        _parse_argument(argument, f"{position}[{index}]")
        for index, argument in enumerate(_as_list(value, position))
    )


def _parse_argument(value: Any, position: str) -> ArgumentSpec:
    if isinstance(value, (LiteralArgument, ReferenceArgument)):
        return value
    if not isinstance(value, Mapping):
        msg = "Argument must be a mapping"
        raise InvalidGraphError(msg, position)

    tag = value.get("type")
    if not tag:
        msg = "Argument must have a type"
        raise InvalidGraphError(msg, position)
    if tag in LITERAL_TAGS:
        return LiteralArgument(value.get("value"))
    if tag in REFERENCE_TAGS:
        return ReferenceArgument(
            target=value.get("id", value.get("name")),
            arguments=_parse_arguments(value.get("arguments"), f"{position}.arguments"),
        )
    msg = f"Unknown argument type '{tag}'"
    raise InvalidGraphError(msg, position)


def _parse_call(value: Any, position: str) -> MethodCall:
    if isinstance(value, MethodCall):
        return value
    if not isinstance(value, Mapping):
        msg = "Method call must be a mapping"
        raise InvalidGraphError(msg, position)
    return MethodCall(
        method=value.get("method"),
        arguments=_parse_arguments(value.get("arguments"), f"{position}.arguments"),
    )


def _parse_property(value: Any, position: str) -> PropertyAssignment:
    if isinstance(value, PropertyAssignment):
        return value
    if not isinstance(value, Mapping):
        msg = "Property must be a mapping"
        raise InvalidGraphError(msg, position)
    raw_value = value.get("value")
    return PropertyAssignment(
        name=value.get("name"),
        value=None if raw_value is None else _parse_argument(raw_value, f"{position}.value"),
    )


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, Mapping, list, tuple, set, frozenset)):
        return len(value) == 0
    return False


class GraphBuilder:
    """Interpret declarative graphs against a container.

    Args:
        resolve: ``Container.get``-compatible callable used for references.
        type_loader: Loader for class names given as strings.

    """

    def __init__(
        self,
        resolve: Callable[[Any, Any], Any],
        type_loader: TypeLoader,
    ) -> None:
        self._resolve = resolve
        self._type_loader = type_loader

    def build(self, graph: DeclarativeGraph | Mapping[str, Any], params: Mapping[int | str, Any]) -> Any:
        """Build and configure one instance.

        Graph-declared ``arguments`` always win; ``params`` are only used when
        the graph declares no constructor arguments.

        Args:
            graph: Graph model or its mapping form.
            params: Explicit parameters passed to ``Container.get``.

        Raises:
            InvalidGraphError: On any structural violation.
            ServiceNotFoundError: If the class or a referenced service does not exist.

        """
        model = graph if isinstance(graph, DeclarativeGraph) else DeclarativeGraph.from_mapping(graph)
        cls = self._load_class(model.class_name)

        if model.arguments:
            instance = cls(*self.build_arguments(model.arguments, "arguments"))
        elif params:
            args, kwargs = split_params(params)
            instance = cls(*args, **kwargs)
        else:
            instance = cls()

        for index, call in enumerate(model.calls):
            self._apply_call(instance, call, f"calls[{index}]")

        for index, prop in enumerate(model.properties):
            self._apply_property(instance, prop, f"properties[{index}]")

        logger.debug(
            "Built %s from graph with %d call(s) and %d property assignment(s)",
            cls.__qualname__,
            len(model.calls),
            len(model.properties),
        )
        return instance

    def build_arguments(self, arguments: Sequence[ArgumentSpec], position: str) -> list[Any]:
        """Build argument specs in order into a positional argument list."""
        return [
            self.build_argument(argument, f"{position}[{index}]")
            for index, argument in enumerate(arguments)
        ]

    def build_argument(self, argument: ArgumentSpec, position: str) -> Any:
        """Build one argument spec.

        Args:
            argument: Literal or reference spec.
            position: Position path used in error messages.

        """
        if isinstance(argument, LiteralArgument):
            if _is_empty(argument.value):
                msg = "Literal argument requires a value"
                raise InvalidGraphError(msg, position)
            return argument.value

        if isinstance(argument, ReferenceArgument):
            if argument.target is None or (isinstance(argument.target, str) and not argument.target.strip()):
                msg = "Reference argument requires a service id"
                raise InvalidGraphError(msg, position)
            nested = self.build_arguments(argument.arguments, f"{position}.arguments")
            return self._resolve(argument.target, nested)

        msg = f"Unknown argument spec {argument!r}"
        raise InvalidGraphError(msg, position)

    def _load_class(self, class_name: str | type[Any] | None) -> type[Any]:
        if is_runtime_class(class_name):
            return class_name
        if class_name is None or (isinstance(class_name, str) and not class_name.strip()):
            msg = "Graph definition is missing 'class'"
            raise InvalidGraphError(msg)
        if not isinstance(class_name, str):
            msg = f"Graph 'class' must be a class or a class name, got {class_name!r}"
            raise InvalidGraphError(msg)

        cls = self._type_loader.load(class_name.strip())
        if cls is None:
            raise ServiceNotFoundError(class_name, f"Graph class '{class_name}' cannot be loaded.")
        return cls

    def _apply_call(self, instance: Any, call: MethodCall, position: str) -> None:
        if not call.method:
            msg = "Method call requires a method name"
            raise InvalidGraphError(msg, position)

        method = getattr(instance, call.method, None)
        if not callable(method):
            msg = f"'{type(instance).__qualname__}.{call.method}' is not a callable method"
            raise InvalidGraphError(msg, position)

        method(*self.build_arguments(call.arguments, f"{position}.arguments"))

    def _apply_property(self, instance: Any, prop: PropertyAssignment, position: str) -> None:
        if not prop.name:
            msg = "Property assignment requires a name"
            raise InvalidGraphError(msg, position)
        if prop.value is None:
            msg = "Property assignment requires a value"
            raise InvalidGraphError(msg, position)

        setattr(instance, prop.name, self.build_argument(prop.value, f"{position}.value"))
