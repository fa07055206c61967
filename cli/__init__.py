"""CLI package for decoding reading payloads locally or through the service."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer application is ``cli.app.app``; the package root does not re-export
# it so that ``cli.app`` keeps resolving to the module that tests patch.

__all__ = []
