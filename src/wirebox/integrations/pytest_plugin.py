from __future__ import annotations

from collections.abc import Iterator

import pytest

from wirebox.container import Container


@pytest.fixture()
def wirebox_container() -> Iterator[Container]:
    """Create a per-test container.

    The fixture is function-scoped, so registrations and shared instances are
    isolated between tests unless users override fixture scope explicitly.
    Shared instances are dropped when the test finishes.

    Yields:
        A new ``Container`` instance.

    """
    container = Container()
    yield container
    container.teardown()
