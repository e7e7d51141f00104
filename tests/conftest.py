"""Shared pytest fixtures for wirebox tests."""

import pytest

from wirebox import Container


@pytest.fixture()
def container() -> Container:
    """Default container resolving unregistered class names."""
    return Container()


@pytest.fixture()
def strict_container() -> Container:
    """Container with autowire_unregistered=False."""
    return Container(autowire_unregistered=False)
