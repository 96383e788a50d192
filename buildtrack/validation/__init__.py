"""Inventory & phase-scope validator."""

from buildtrack.validation.validator import ensure_valid, validate

__all__ = ["ensure_valid", "validate"]
