from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeAlias, Union

from wirebox.exceptions import (
    CircularDependencyError,
    ContainerError,
    InvalidRegistrationError,
    MissingParameterError,
)
from wirebox.introspection import ParameterDescriptor, is_runtime_class, qualified_name

logger = logging.getLogger(__name__)

Params: TypeAlias = Mapping[Union[int, str], Any]
"""Explicit parameters: ``int`` keys are positional, ``str`` keys are named."""


def as_params(params: Params | Sequence[Any] | None) -> dict[int | str, Any]:
    """Normalize explicit parameters to a fresh dict.

    A sequence is treated as positional values.

    Args:
        params: Mapping, sequence or ``None``.

    Raises:
        InvalidRegistrationError: If ``params`` is neither a mapping nor a sequence.

    """
    if params is None:
        return {}
    if isinstance(params, Mapping):
        return dict(params)
    if isinstance(params, Sequence) and not isinstance(params, (str, bytes)):
        return dict(enumerate(params))
    msg = f"Explicit parameters must be a mapping or a sequence, got {type(params).__name__}."
    raise InvalidRegistrationError(msg)


def split_params(params: Params) -> tuple[list[Any], dict[str, Any]]:
    """Split explicit parameters into positional values (ordered by index) and keyword values."""
    positional = sorted((key, value) for key, value in params.items() if isinstance(key, int))
    named = {key: value for key, value in params.items() if isinstance(key, str)}
    return [value for _, value in positional], named


def invoke(
    target: Callable[..., Any],
    descriptors: Sequence[ParameterDescriptor],
    values: Sequence[Any],
) -> Any:
    """Call ``target`` with autowired values, passing keyword-only parameters by name."""
    args: list[Any] = []
    kwargs: dict[str, Any] = {}
    for descriptor, value in zip(descriptors, values):
        if descriptor.keyword_only:
            kwargs[descriptor.name] = value
        else:
            args.append(value)
    return target(*args, **kwargs)


class Autowirer:
    """Match parameter descriptors to explicit values, container services and defaults.

    Args:
        resolve: ``Container.get``-compatible callable used for class-typed
            parameters.

    """

    def __init__(self, resolve: Callable[[Any, Any], Any]) -> None:
        self._resolve = resolve

    def resolve_parameters(
        self,
        descriptors: Sequence[ParameterDescriptor],
        params: Params,
        *,
        target: str = "<callable>",
    ) -> list[Any]:
        """Produce the ordered argument list for one invocation.

        For each parameter, in declaration order: an explicit value is used
        verbatim; otherwise a class-typed parameter is resolved through the
        container; otherwise its default is used. Explicit values keyed by the
        dependency's own id (dotted name or bare class name) are forwarded as
        that dependency's explicit parameters.

        Args:
            descriptors: Parameters of the target, in declaration order.
            params: Explicit parameters; ``int`` keys are remapped to the name
                of the parameter at that index, named keys win on collision.
            target: Name used in error messages.

        Raises:
            MissingParameterError: If a parameter cannot be satisfied or a
                positional index is out of range.

        """
        explicit = self._merge_explicit(descriptors, params, target)
        resolved: list[Any] = []

        for descriptor in descriptors:
            if descriptor.name in explicit:
                resolved.append(explicit[descriptor.name])
            elif descriptor.declared_type is not None:
                resolved.append(self._resolve_declared(descriptor, explicit))
            elif descriptor.has_default:
                resolved.append(descriptor.default)
            else:
                raise MissingParameterError(target, descriptor.name)

        return resolved

    def _merge_explicit(
        self,
        descriptors: Sequence[ParameterDescriptor],
        params: Params,
        target: str,
    ) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for key, value in params.items():
            if not isinstance(key, int):
                continue
            if not 0 <= key < len(descriptors):
                raise MissingParameterError(target, key)
            merged[descriptors[key].name] = value

        merged.update((key, value) for key, value in params.items() if isinstance(key, str))
        return merged

    def _resolve_declared(self, descriptor: ParameterDescriptor, explicit: dict[str, Any]) -> Any:
        declared_type = descriptor.declared_type
        nested = None
        for key in _dependency_keys(declared_type):
            if key in explicit:
                # Consumed once so a second parameter of the same type is not seeded.
                nested = as_params(explicit.pop(key))
                break

        try:
            return self._resolve(declared_type, nested)
        except CircularDependencyError:
            raise
        except ContainerError as exc:
            if not descriptor.has_default:
                raise
            logger.debug(
                "Using default for parameter '%s' after failing to resolve %s: %s",
                descriptor.name,
                declared_type,
                exc,
            )
            return descriptor.default


def _dependency_keys(declared_type: type[Any] | str | None) -> tuple[str, ...]:
    if is_runtime_class(declared_type):
        return (qualified_name(declared_type), declared_type.__name__)
    if isinstance(declared_type, str):
        return (declared_type,)
    return ()
