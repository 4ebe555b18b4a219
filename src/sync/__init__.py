"""Idempotent create-or-update of a single solution file on GitHub."""

from .engine import ContentUpsertEngine

__all__ = ["ContentUpsertEngine"]
