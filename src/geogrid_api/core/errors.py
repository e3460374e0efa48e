"""Exception taxonomy shared by the engine, the repository and the routes."""

from __future__ import annotations


class GridConfigError(ValueError):
    """Raised when a grid configuration cannot produce finite points."""


class RepositoryError(RuntimeError):
    """Raised when the grid result store cannot be reached or written."""


class RetryError(RuntimeError):
    """Raised once every attempt of a retried operation has failed."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


__all__ = ["GridConfigError", "RepositoryError", "RetryError"]
