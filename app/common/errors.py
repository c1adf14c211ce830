"""Domain errors raised by services and engines.

Endpoints translate these into ``HTTPException`` responses; anything else
(database errors included) propagates unchanged.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base for errors carrying a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(DomainError):
    """A referenced course, quiz, question bank or row does not exist."""


class InvalidInput(DomainError):
    """Request cannot proceed with the supplied identifiers or payload."""


class AttemptNotAllowed(InvalidInput):
    """Attempt policy (cap or cool-down) rejected a quiz submission."""


class Forbidden(DomainError):
    """Caller may not act on the referenced row."""


__all__ = ["DomainError", "NotFound", "InvalidInput", "AttemptNotAllowed", "Forbidden", "status_for"]


def status_for(exc: DomainError) -> int:
    if isinstance(exc, AttemptNotAllowed):
        return 429
    if isinstance(exc, NotFound):
        return 404
    if isinstance(exc, Forbidden):
        return 403
    return 400
