from __future__ import annotations

import importlib
from typing import Any

from wirebox.introspection import is_runtime_class


def _load_base_settings(module_name: str) -> type[Any] | None:
    try:
        module = importlib.import_module(module_name)
    except ImportError:
        return None
    base_settings = getattr(module, "BaseSettings", None)
    if isinstance(base_settings, type):
        return base_settings
    return None


SETTINGS_BASE: type[Any] | None = _load_base_settings("pydantic_settings")
"""``pydantic_settings.BaseSettings`` when installed, else ``None``."""


def is_pydantic_settings_subclass(candidate: object) -> bool:
    """Return whether a class is a pydantic-settings model.

    The container registers such classes as shared entries the first time
    they are resolved without a registration, so every consumer sees one
    settings object per container. Without pydantic-settings installed this
    returns ``False`` for every candidate.

    Args:
        candidate: Object to test.

    """
    if SETTINGS_BASE is None or not is_runtime_class(candidate):
        return False
    try:
        return issubclass(candidate, SETTINGS_BASE)
    except TypeError:
        return False


__all__ = [
    "SETTINGS_BASE",
    "is_pydantic_settings_subclass",
]
