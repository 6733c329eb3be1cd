"""Exceptions raised by the link engine."""

from __future__ import annotations


class LinkEngineError(ValueError):
    """Base class for engine input errors."""


class InvalidCatalogError(LinkEngineError):
    """The page catalog is empty or malformed. Raised before any block is scanned."""


class InvalidConfigError(LinkEngineError):
    """A configuration value is out of range or of the wrong type."""
