from __future__ import annotations

from typing import Optional


class CatalogError(Exception):
    """Base class for failures reported by a catalog gateway."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class CatalogUnavailableError(CatalogError):
    """Connectivity or authentication failure that affects every catalog call."""


class CatalogRequestError(CatalogError):
    """A single catalog request was rejected by the store."""


class ImportRejectedError(ValueError):
    """Raised when reconciliation is requested for an import that failed validation."""


class ConfigError(ValueError):
    """Raised for configuration the service cannot run with."""
