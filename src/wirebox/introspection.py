from __future__ import annotations

import builtins
import importlib
import inspect
import logging
import types
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated, Any, TypeGuard, Union, get_args, get_origin, get_type_hints

from wirebox.defaults import NON_AUTOWIRED_BASE_TYPES

logger = logging.getLogger(__name__)

_SKIPPED_PARAMETER_KINDS = (
    inspect.Parameter.VAR_POSITIONAL,
    inspect.Parameter.VAR_KEYWORD,
)


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def qualified_name(cls: type[Any]) -> str:
    """Return the dotted ``module.QualName`` used as the service id of a class."""
    return f"{cls.__module__}.{cls.__qualname__}"


@dataclass(frozen=True, slots=True)
class ParameterDescriptor:
    """Describe one constructor or callable parameter for autowiring.

    Descriptors are normally produced by ``ParameterExtractor`` but may also be
    written by hand and attached to a ``ClassRef`` to bypass introspection.
    """

    name: str
    declared_type: type[Any] | str | None = None
    """Class or service id resolved through the container, ``None`` if not class-typed."""

    has_default: bool = False
    default: Any = None
    keyword_only: bool = False


class TypeLoader:
    """Load classes by dotted name.

    Accepts ``"package.module.Class"``, nested ``"package.module.Outer.Inner"``
    and explicit ``"package.module:Outer.Inner"`` forms. Only classes are
    returned; any other attribute counts as not loadable.
    """

    def __init__(self) -> None:
        self._loaded: dict[str, type[Any]] = {}

    def load(self, name: str) -> type[Any] | None:
        """Return the class registered under ``name`` or ``None`` when it is not loadable.

        Args:
            name: Dotted class name.

        """
        cached = self._loaded.get(name)
        if cached is not None:
            return cached

        loaded: type[Any] | None = None
        if ":" in name:
            module_name, _, attribute_path = name.partition(":")
            loaded = self._load_attribute(module_name, attribute_path)
        else:
            parts = name.split(".")
            # Longest module prefix first so "pkg.mod.Class" beats "pkg" + "mod.Class".
            for index in range(len(parts) - 1, 0, -1):
                loaded = self._load_attribute(".".join(parts[:index]), ".".join(parts[index:]))
                if loaded is not None:
                    break

        if loaded is not None:
            self._loaded[name] = loaded
            logger.debug("Loaded class %s for name '%s'", loaded, name)
        return loaded

    def _load_attribute(self, module_name: str, attribute_path: str) -> type[Any] | None:
        try:
            module = importlib.import_module(module_name)
        except ModuleNotFoundError as exc:
            # Only the named module (or a parent package) being absent means "not loadable".
            if exc.name is not None and (module_name == exc.name or module_name.startswith(f"{exc.name}.")):
                return None
            raise
        except ValueError:
            return None

        value: Any = module
        for attribute in attribute_path.split("."):
            value = getattr(value, attribute, None)
            if value is None:
                return None
        return value if is_runtime_class(value) else None


class ParameterExtractor:
    """Extract parameter descriptors from classes and callables.

    Type hints are evaluated with ``typing.get_type_hints``. When that fails
    (for example a name imported only under ``TYPE_CHECKING``) each annotation
    is evaluated on its own against the module globals; the ones that still
    fail stay strings and become service ids.
    """

    def __init__(self) -> None:
        self._cache: weakref.WeakKeyDictionary[type[Any], tuple[ParameterDescriptor, ...]] = (
            weakref.WeakKeyDictionary()
        )

    def extract(self, target: Callable[..., Any]) -> tuple[ParameterDescriptor, ...]:
        """Return the ordered parameter descriptors of a class constructor or callable.

        Args:
            target: Class to construct or callable to invoke.

        """
        # Classes only, weakly keyed; callables passed to ``call`` are never cached.
        cacheable = inspect.isclass(target)
        if cacheable:
            cached = self._cache.get(target)
            if cached is not None:
                return cached

        descriptors = self._extract(target)
        if cacheable:
            self._cache[target] = descriptors
        return descriptors

    def _extract(self, target: Callable[..., Any]) -> tuple[ParameterDescriptor, ...]:
        try:
            signature = inspect.signature(target)
        except (ValueError, TypeError):
            return ()

        hints = self._type_hints(target)
        descriptors: list[ParameterDescriptor] = []
        for parameter in signature.parameters.values():
            if parameter.kind in _SKIPPED_PARAMETER_KINDS:
                continue
            annotation = hints.get(parameter.name, parameter.annotation)
            has_default = parameter.default is not inspect.Parameter.empty
            descriptors.append(
                ParameterDescriptor(
                    name=parameter.name,
                    declared_type=declared_type_of(annotation),
                    has_default=has_default,
                    default=parameter.default if has_default else None,
                    keyword_only=parameter.kind is inspect.Parameter.KEYWORD_ONLY,
                ),
            )
        return tuple(descriptors)

    def _type_hints(self, target: Callable[..., Any]) -> dict[str, Any]:
        if inspect.isclass(target):
            hinted: Any = target.__init__
        elif inspect.isfunction(target) or inspect.ismethod(target):
            hinted = target
        else:
            hinted = getattr(target, "__call__", target)  # noqa: B004
        try:
            return get_type_hints(hinted, include_extras=True)
        except (NameError, TypeError, AttributeError):
            logger.debug("Evaluating annotations of %r one at a time", target)
            return _evaluate_annotations(hinted)


def _evaluate_annotations(hinted: Any) -> dict[str, Any]:
    """Evaluate each annotation separately, leaving unresolvable ones out.

    Parameters missing from the result keep their raw (string) annotation.
    """
    try:
        annotations = inspect.get_annotations(hinted)
    except (NameError, TypeError):
        return {}

    namespace = getattr(inspect.unwrap(hinted), "__globals__", {})
    hints: dict[str, Any] = {}
    for name, annotation in annotations.items():
        if not isinstance(annotation, str):
            hints[name] = annotation
            continue
        try:
            hints[name] = eval(annotation, dict(namespace))  # noqa: S307
        except (NameError, AttributeError, TypeError, SyntaxError):
            logger.debug("Annotation %r of parameter '%s' is kept as a service id", annotation, name)
    return hints


def declared_type_of(annotation: Any) -> type[Any] | str | None:
    """Return the class or service id an annotation asks the container for.

    ``Annotated[X, ...]`` and ``Optional[X]`` unwrap to ``X``. Builtins and
    value types such as ``datetime`` or ``UUID`` are never resolved through
    the container, nor are other generic aliases.

    Args:
        annotation: Parameter annotation, possibly a string.

    """
    if annotation is inspect.Parameter.empty or annotation is None or annotation is Any:
        return None

    if isinstance(annotation, str):
        name = annotation.strip()
        if not name or isinstance(getattr(builtins, name, None), type):
            return None
        return name

    origin = get_origin(annotation)
    if origin is Annotated:
        return declared_type_of(get_args(annotation)[0])
    if origin is Union or origin is types.UnionType:
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        return declared_type_of(members[0]) if len(members) == 1 else None

    if not is_runtime_class(annotation):
        return None
    if annotation.__module__ == "builtins" or issubclass(annotation, type):
        return None
    if issubclass(annotation, NON_AUTOWIRED_BASE_TYPES):
        return None
    return annotation
