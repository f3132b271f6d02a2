"""
Domain errors raised by the service layer.

CRUD reads keep the simple ``None``-on-missing convention; these typed
errors are reserved for operations whose callers must distinguish failure
kinds (moderation, subscriptions).  ``main.py`` maps each class onto an
HTTP status.
"""


class NewsdeskError(Exception):
    """Base error for the service layer."""

    def __init__(self, message: str, code: str = "newsdesk_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(NewsdeskError):
    """The targeted record does not exist."""

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier!r} not found", "not_found")


class ModerationConflictError(NewsdeskError):
    """Concurrent writers kept colliding on the same comment or article."""

    def __init__(self, target: str, attempts: int):
        self.target = target
        self.attempts = attempts
        super().__init__(
            f"{target} could not be updated after {attempts} attempt(s) "
            "because of concurrent modifications",
            "moderation_conflict",
        )


class DuplicateError(NewsdeskError):
    """A unique business key is already taken."""

    def __init__(self, message: str):
        super().__init__(message, "duplicate")
