from __future__ import annotations

from typing import Any

import pytest

from wirebox.autowiring import Autowirer, as_params, invoke, split_params
from wirebox.exceptions import (
    CircularDependencyError,
    ContainerError,
    InvalidRegistrationError,
    MissingParameterError,
    ServiceNotFoundError,
)
from wirebox.introspection import ParameterDescriptor
from tests.services import Clock, Transport


class _RecordingResolver:
    def __init__(self, failure: Exception | None = None) -> None:
        self.calls: list[tuple[Any, Any]] = []
        self.failure = failure

    def __call__(self, service_id: Any, params: Any) -> Any:
        self.calls.append((service_id, params))
        if self.failure is not None:
            raise self.failure
        return f"resolved:{service_id if isinstance(service_id, str) else service_id.__name__}"


def test_explicit_values_then_resolution_then_defaults() -> None:
    resolver = _RecordingResolver()
    descriptors = [
        ParameterDescriptor("clock", declared_type=Clock),
        ParameterDescriptor("title"),
        ParameterDescriptor("footer", has_default=True, default="end"),
    ]

    values = Autowirer(resolver).resolve_parameters(descriptors, {"title": "Q3"})

    assert values == ["resolved:Clock", "Q3", "end"]
    assert resolver.calls == [(Clock, None)]


def test_positional_keys_map_to_parameter_names() -> None:
    descriptors = [ParameterDescriptor("first"), ParameterDescriptor("second")]

    values = Autowirer(_RecordingResolver()).resolve_parameters(descriptors, {1: "b", 0: "a"})

    assert values == ["a", "b"]


def test_named_keys_win_over_positional_keys() -> None:
    descriptors = [ParameterDescriptor("first")]

    autowirer = Autowirer(_RecordingResolver())

    values = autowirer.resolve_parameters(descriptors, {0: "positional", "first": "named"})

    assert values == ["named"]


@pytest.mark.parametrize("index", [-1, 2])
def test_positional_key_out_of_range(index: int) -> None:
    descriptors = [ParameterDescriptor("first"), ParameterDescriptor("second")]

    with pytest.raises(MissingParameterError) as exc_info:
        Autowirer(_RecordingResolver()).resolve_parameters(descriptors, {index: "x"}, target="app.Pair")

    assert exc_info.value.parameter == index
    assert exc_info.value.target == "app.Pair"


def test_unknown_named_keys_are_ignored() -> None:
    autowirer = Autowirer(_RecordingResolver())

    values = autowirer.resolve_parameters([ParameterDescriptor("first")], {"first": 1, "other": 2})

    assert values == [1]


def test_nested_params_are_forwarded_by_type_name() -> None:
    resolver = _RecordingResolver()
    descriptors = [
        ParameterDescriptor("primary", declared_type=Transport),
        ParameterDescriptor("backup", declared_type=Transport),
    ]

    Autowirer(resolver).resolve_parameters(descriptors, {"Transport": {"host": "mx"}})

    assert resolver.calls == [(Transport, {"host": "mx"}), (Transport, None)]


def test_nested_params_are_forwarded_by_service_id() -> None:
    resolver = _RecordingResolver()

    Autowirer(resolver).resolve_parameters(
        [ParameterDescriptor("mailer", declared_type="app.Mailer")],
        {"app.Mailer": ["ops"]},
    )

    assert resolver.calls == [("app.Mailer", {0: "ops"})]


def test_resolution_failure_falls_back_to_default() -> None:
    resolver = _RecordingResolver(ServiceNotFoundError("tests.services.Clock"))
    descriptors = [ParameterDescriptor("clock", declared_type=Clock, has_default=True, default=None)]

    assert Autowirer(resolver).resolve_parameters(descriptors, {}) == [None]


def test_scalar_seed_is_rejected_even_with_default() -> None:
    resolver = _RecordingResolver()
    descriptors = [ParameterDescriptor("clock", declared_type=Clock, has_default=True, default=None)]

    with pytest.raises(InvalidRegistrationError, match="mapping or a sequence"):
        Autowirer(resolver).resolve_parameters(descriptors, {"Clock": "x"})

    assert resolver.calls == []


def test_resolution_failure_without_default_propagates() -> None:
    resolver = _RecordingResolver(ServiceNotFoundError("tests.services.Clock"))

    with pytest.raises(ServiceNotFoundError):
        Autowirer(resolver).resolve_parameters([ParameterDescriptor("clock", declared_type=Clock)], {})


def test_circular_dependency_is_never_replaced_by_default() -> None:
    resolver = _RecordingResolver(CircularDependencyError(["A", "B"], 1))
    descriptors = [ParameterDescriptor("clock", declared_type=Clock, has_default=True, default=None)]

    with pytest.raises(CircularDependencyError):
        Autowirer(resolver).resolve_parameters(descriptors, {})


def test_missing_parameter_names_target() -> None:
    with pytest.raises(MissingParameterError, match="Parameter 'title' of 'app.Report'"):
        Autowirer(_RecordingResolver()).resolve_parameters([ParameterDescriptor("title")], {}, target="app.Report")


def test_as_params() -> None:
    assert as_params(None) == {}
    assert as_params(["a", "b"]) == {0: "a", 1: "b"}
    assert as_params({"x": 1}) == {"x": 1}

    with pytest.raises(ContainerError):
        as_params("abc")  # type: ignore[arg-type]


def test_split_params_orders_positional_values() -> None:
    assert split_params({2: "c", "x": 1, 0: "a", 1: "b"}) == (["a", "b", "c"], {"x": 1})


def test_invoke_passes_keyword_only_by_name() -> None:
    def target(first: str, *, second: str) -> tuple[str, str]:
        return first, second

    descriptors = [ParameterDescriptor("first"), ParameterDescriptor("second", keyword_only=True)]

    assert invoke(target, descriptors, ["a", "b"]) == ("a", "b")
