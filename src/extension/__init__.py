"""Host-facing entry point: wires components together and dispatches UI actions."""

from .handler import Extension

__all__ = ["Extension"]
