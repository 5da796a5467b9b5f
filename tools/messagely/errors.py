"""Error signals raised by the messagely data-access layer.

Only conditions the stores detect themselves are raised as ``AppError``.
Database failures (constraint violations, connectivity problems) are left
to propagate as the driver's own exceptions.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Error carrying a human-readable message and an HTTP-style status."""

    status = 500

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def to_dict(self) -> dict[str, Any]:
        """Shape the error for a transport layer response body."""
        return {"error": {"message": self.message, "status": self.status}}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, status={self.status})"


class NotFoundError(AppError):
    """A lookup matched no rows."""

    status = 404


class ConfigError(AppError):
    """Configuration file or override could not be used."""
