"""Cinemate: movie discovery with persistent favorites and watchlist."""

from __future__ import annotations

from importlib import import_module
from typing import Any

__version__ = "1.0.0"

_LAZY_ATTRIBUTES = {"app": "app.main", "create_app": "app.main"}


def __getattr__(name: str) -> Any:
    # Importing app.main builds the FastAPI app, so defer it until asked for.
    module_name = _LAZY_ATTRIBUTES.get(name)
    if module_name is None:
        raise AttributeError(f"module 'app' has no attribute {name}")
    return getattr(import_module(module_name), name)
