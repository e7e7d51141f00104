import datetime
import gc
import uuid
from decimal import Decimal
from functools import partial
from pathlib import Path
from typing import Annotated, Any, Optional, Union

import pytest

from wirebox.introspection import ParameterDescriptor, ParameterExtractor, declared_type_of
from tests.deferred_services import Widget, render
from tests.services import Clock, Report, Transport


@pytest.fixture()
def extractor() -> ParameterExtractor:
    return ParameterExtractor()


def test_extract_class_constructor(extractor: ParameterExtractor) -> None:
    descriptors = extractor.extract(Report)

    assert descriptors == (
        ParameterDescriptor("clock", declared_type=Clock),
        ParameterDescriptor("title"),
        ParameterDescriptor("subtitle", has_default=True, default="draft"),
        ParameterDescriptor("footer", has_default=True, default="end"),
    )


def test_extract_skips_variadic_parameters(extractor: ParameterExtractor) -> None:
    def handler(clock: Clock, *args: Any, label: str = "x", **kwargs: Any) -> None:
        pass

    descriptors = extractor.extract(handler)

    assert [descriptor.name for descriptor in descriptors] == ["clock", "label"]
    assert descriptors[1].keyword_only is True


def test_extract_bound_method_drops_self(extractor: ParameterExtractor) -> None:
    class Sender:
        def send(self, transport: Transport) -> Transport:
            return transport

    descriptors = extractor.extract(Sender().send)

    assert descriptors == (ParameterDescriptor("transport", declared_type=Transport),)


def test_extract_partial_keeps_remaining_parameters(extractor: ParameterExtractor) -> None:
    def build(host: str, port: int) -> Transport:
        return Transport(host, port)

    descriptors = extractor.extract(partial(build, "mx.example.com"))

    assert [descriptor.name for descriptor in descriptors] == ["port"]


def test_extract_caches_classes(extractor: ParameterExtractor) -> None:
    assert extractor.extract(Report) is extractor.extract(Report)


def test_unresolvable_forward_reference_becomes_service_id(extractor: ParameterExtractor) -> None:
    def handler(mailer: "mail.Mailer", clock: Clock) -> None:  # noqa: F821
        pass

    descriptors = extractor.extract(handler)

    assert descriptors[0].declared_type == "mail.Mailer"
    assert descriptors[1].declared_type is Clock


@pytest.mark.parametrize(
    ("annotation", "expected"),
    [
        pytest.param(Clock, Clock, id="class"),
        pytest.param(Optional[Clock], Clock, id="optional"),
        pytest.param(Union[Clock, None], Clock, id="union-with-none"),
        pytest.param(Annotated[Clock, "tag"], Clock, id="annotated"),
        pytest.param(Union[Clock, Transport], None, id="ambiguous-union"),
        pytest.param(str, None, id="str"),
        pytest.param(int, None, id="int"),
        pytest.param(list[Clock], None, id="generic-alias"),
        pytest.param(type, None, id="metaclass"),
        pytest.param(datetime.datetime, None, id="datetime"),
        pytest.param(uuid.UUID, None, id="uuid"),
        pytest.param(Decimal, None, id="decimal"),
        pytest.param(Path, None, id="path"),
        pytest.param(Any, None, id="any"),
        pytest.param("app.Mailer", "app.Mailer", id="string-id"),
        pytest.param("  app.Mailer ", "app.Mailer", id="string-id-stripped"),
        pytest.param("str", None, id="builtin-name"),
        pytest.param("", None, id="empty-string"),
        pytest.param(None, None, id="none"),
    ],
)
def test_declared_type_of(annotation: Any, expected: Any) -> None:
    assert declared_type_of(annotation) == expected


def test_partially_resolvable_future_annotations(extractor: ParameterExtractor) -> None:
    descriptors = extractor.extract(Widget)

    assert descriptors == (
        ParameterDescriptor("clock", declared_type=Clock),
        ParameterDescriptor("greeter", declared_type="Greeter | None", has_default=True, default=None),
    )


def test_functions_and_closures_are_not_cached(extractor: ParameterExtractor) -> None:
    for index in range(50):
        extractor.extract(lambda clock, index=index: (clock, index))

    extractor.extract(render)

    assert len(extractor._cache) == 0


def test_class_cache_does_not_keep_classes_alive(extractor: ParameterExtractor) -> None:
    class Temporary:
        def __init__(self, clock: Clock) -> None:
            self.clock = clock

    extractor.extract(Temporary)
    assert len(extractor._cache) == 1

    del Temporary
    gc.collect()

    assert len(extractor._cache) == 0
