# src/daytasks/errors.py

"""
Error taxonomy.

- ValidationError: rejected before any network call (e.g. empty title)
- NotFoundError: the referenced template no longer exists
- InvalidOperationError: illegal operation on a synthesized occurrence
- TransportError: persistence call failed or returned non-success
- AuthExpiredError: the bearer credential was rejected
"""

from __future__ import annotations


class DaytasksError(Exception):
    """Base class for all errors raised by the task core."""


class ValidationError(DaytasksError):
    pass


class NotFoundError(DaytasksError):
    pass


class InvalidOperationError(DaytasksError):
    pass


class TransportError(DaytasksError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthExpiredError(DaytasksError):
    def __init__(self, message: str = "credential rejected", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
