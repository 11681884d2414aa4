"""Rejections raised by game actions.

Every failed action raises one of these with a human readable ``reason``.
None of them leaves a partial change behind: the orchestrator validates
before committing and rolls the session back when the store refuses.
"""


class GameActionError(Exception):
    kind = 'error'
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self):
        return {'error': self.reason, 'kind': self.kind}


class ValidationRejected(GameActionError):
    """Bad input caught before any commit (empty name, missing guess...)."""
    kind = 'validation'
    status_code = 400


class PreconditionRejected(GameActionError):
    """Action attempted in the wrong phase or by the wrong player."""
    kind = 'precondition'
    status_code = 409

    def __init__(self, reason: str, status_code: int = None):
        super().__init__(reason)
        if status_code is not None:
            self.status_code = status_code


class ConflictRejected(GameActionError):
    """Duplicate submission. Retrying fails the same way."""
    kind = 'conflict'
    status_code = 409


class TransientFailure(GameActionError):
    """The store was unavailable; nothing was changed and the action may be retried."""
    kind = 'transient'
    status_code = 503


class GameNotFound(GameActionError):
    kind = 'not_found'
    status_code = 404
