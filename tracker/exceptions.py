"""Typed exception hierarchy for the migration engine.

Raise these instead of bare RuntimeError so that:
- Runner code is testable without a CLI process around it
- Exit codes are declared in one place
- cli.py converts them to consistent log lines and process exit codes
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tracker.schemas.pydantic import MigrationResult


class AppError(Exception):
    """Base application error — caught by the CLI entrypoint."""

    exit_code: int = 1
    detail: str = "Internal error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.__class__.detail
        super().__init__(self.detail)


class ConnectivityError(AppError):
    """The record store could not be reached. Nothing has run."""

    exit_code = 3
    detail = "Could not connect to the record store"


class MigrationNotFoundError(AppError):
    """No migration unit is registered under the requested id."""

    detail = "Migration not found"


class MigrationFailedError(AppError):
    """A migration unit failed and the run was aborted.

    ``results`` holds every result produced before the abort, the failing one last.
    """

    detail = "Migration failed"

    def __init__(self, detail: str | None = None, results: list[MigrationResult] | None = None) -> None:
        super().__init__(detail)
        self.results = results or []


class StoreError(AppError):
    """A record could not be converted to or from its stored representation."""

    detail = "Invalid stored record"
