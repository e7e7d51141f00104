import pytest

from wirebox import Container, InvalidRegistrationError, MissingParameterError, ServiceNotFoundError
from tests.services import Clock, ReportService


def test_call_autowires_function_parameters(container: Container) -> None:
    def describe(clock: Clock, label: str = "now") -> str:
        return f"{label}:{type(clock).__name__}"

    assert container.call(describe) == "now:Clock"


def test_call_uses_explicit_params(container: Container) -> None:
    clock = Clock()

    def pick(clock: Clock, label: str) -> tuple[Clock, str]:
        return clock, label

    assert container.call(pick, {"clock": clock, "label": "x"}) == (clock, "x")
    assert container.call(pick, [clock, "y"]) == (clock, "y")


def test_call_resolves_registered_services(container: Container) -> None:
    clock = Clock()
    container.set(Clock, clock)
    container.set_shared(Clock)

    def first(clock: Clock) -> Clock:
        return clock

    assert container.call(first) is container.call(first)


def test_call_accepts_service_method_pair(container: Container) -> None:
    assert container.call((ReportService, "render")) == "Clock:txt"
    assert container.call(("tests.services.ReportService", "render"), {"fmt": "pdf"}) == "Clock:pdf"


def test_call_accepts_bound_methods_and_callable_objects(container: Container) -> None:
    class Handler:
        def __call__(self, clock: Clock) -> str:
            return type(clock).__name__

    service = ReportService()

    assert container.call(service.render, {"fmt": "md"}) == "Clock:md"
    assert container.call(Handler()) == "Clock"


def test_call_with_unknown_method_raises(container: Container) -> None:
    with pytest.raises(ServiceNotFoundError, match="no callable method 'missing'"):
        container.call((ReportService, "missing"))


def test_call_with_non_callable_target_raises(container: Container) -> None:
    with pytest.raises(InvalidRegistrationError):
        container.call(42)  # type: ignore[arg-type]


def test_call_reports_missing_parameters(container: Container) -> None:
    def needs_name(name: str) -> str:
        return name

    with pytest.raises(MissingParameterError) as exc_info:
        container.call(needs_name)

    assert exc_info.value.parameter == "name"


def test_repeated_calls_with_closures_do_not_grow_the_descriptor_cache(container: Container) -> None:
    for index in range(200):
        assert container.call(lambda clock, index=index: (clock, index), {"clock": index}) == (index, index)

    assert len(container._parameter_extractor._cache) == 0
