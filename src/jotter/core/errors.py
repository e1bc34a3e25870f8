"""Errors raised by the persistence layer."""

from __future__ import annotations


class PersistenceError(Exception):
    """A gateway operation failed.

    The driver-level failure, when there is one, is chained with
    ``raise ... from exc`` and also exposed as ``cause``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"
