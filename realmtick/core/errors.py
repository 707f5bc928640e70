"""Domain errors surfaced to callers.

Each error carries a stable ``code`` and the HTTP status class the API layer
maps it to. Step-internal failures are plain exceptions and never reach here.
"""

from __future__ import annotations


class RealmTickError(Exception):
    """Base class for errors a caller is expected to handle."""

    code = "ERROR"
    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CharacterNotFoundError(RealmTickError):
    code = "NOT_FOUND"
    status = 404


class NoActiveActionError(RealmTickError):
    code = "NO_ACTIVE_ACTION"
    status = 400


class ActionNotReadyError(RealmTickError):
    code = "NOT_READY"
    status = 400


class ActionInProgressError(RealmTickError):
    code = "ACTION_IN_PROGRESS"
    status = 400


class AlreadyCollectedError(RealmTickError):
    """A concurrent request already collected this action's rewards."""

    code = "ALREADY_COLLECTED"
    status = 409
