"""
Typed failure reasons returned to the presentation layer.

Every error carries a human-readable message and a numeric code.
Local validation failures use HTTP-like codes so they look the same
as the ones coming back from the remote store.
"""

from __future__ import annotations


class CatalogError(Exception):
    code = 400

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class FormatError(CatalogError):
    """Malformed identifier or value."""

    code = 400


class RequiredFieldError(CatalogError):
    """Missing mandatory field."""

    code = 400


class DuplicateError(CatalogError):
    """Identifier or composite key collision."""

    code = 409


class DependencyConflictError(CatalogError):
    """Delete blocked by a dependent course."""

    code = 409

    def __init__(self, message: str, dependents: list[str] | None = None, code: int | None = None) -> None:
        super().__init__(message, code)
        self.dependents = list(dependents or [])


class NotFoundError(CatalogError):
    """Referenced entity absent."""

    code = 404


class TransportError(CatalogError):
    """
    Collaborator / network failure. `code` is the HTTP status from the
    remote store, or 0 when no response was received at all.
    """

    code = 0
