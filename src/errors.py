"""
Error taxonomy for the table reconciler.

Validation errors are never retried. Not-found is kept distinct from other
remote failures so callers can treat it as "already absent". Operation
errors wrap the underlying cause with the identifier and operation name.
"""

from typing import Iterable, Optional


class ReconcilerError(Exception):
    """Base class for all reconciler errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# Validation


class ValidationError(ReconcilerError):
    """Raised when declared input is malformed."""


class InvalidNameError(ValidationError):
    """Raised when a keyspace or table name does not match the naming rules."""


class InvalidIdentifierError(ValidationError):
    """Raised when an external identifier cannot be parsed."""


class InvalidConfigError(ValidationError):
    """Raised when a declared table configuration fails validation."""


class ReplacementRequiredError(ValidationError):
    """Raised when an update would change a field that forces replacement."""

    def __init__(self, fields: Iterable[str]):
        self.fields = sorted(fields)
        super().__init__(
            f"cannot update immutable fields in place: {', '.join(self.fields)}"
        )


# Remote API


class APIError(ReconcilerError):
    """Raised when the remote API rejects a request."""

    def __init__(self, message: str, code: str = "", status: Optional[int] = None):
        self.code = code
        self.status = status
        super().__init__(f"{code}: {message}" if code else message)


class NotFoundError(APIError):
    """Raised when the remote resource does not exist."""

    def __init__(self, message: str, code: str = "ResourceNotFoundException"):
        super().__init__(message, code=code, status=400)


# Waiting


class WaitError(ReconcilerError):
    """Base class for poll loop failures."""


class WaitTimeoutError(WaitError):
    """Raised when the deadline passes while the resource is still pending."""

    def __init__(self, last_state: str, expected: Iterable[str], timeout: float):
        self.last_state = last_state
        self.expected = list(expected)
        self.timeout = timeout
        super().__init__(
            f"timeout while waiting for state to become '{', '.join(self.expected)}' "
            f"(last state: '{last_state}', timeout: {timeout}s)"
        )


class UnexpectedStateError(WaitError):
    """Raised when the resource reports a status outside pending and target."""

    def __init__(self, state: str, expected: Iterable[str]):
        self.state = state
        self.expected = list(expected)
        super().__init__(
            f"unexpected state '{state}', wanted target '{', '.join(self.expected)}'"
        )


class UnexpectedNotFoundError(WaitError, NotFoundError):
    """Raised when the resource disappears while a status was expected."""

    def __init__(self, checks: int, expected: Iterable[str]):
        self.checks = checks
        self.expected = list(expected)
        NotFoundError.__init__(
            self,
            f"couldn't find resource ({checks} retries) while waiting for "
            f"'{', '.join(self.expected)}'",
        )


# Operations


class OperationError(ReconcilerError):
    """Raised when a lifecycle operation fails for a specific table."""

    operation = "reconciling"

    def __init__(self, identifier: str, cause: Exception):
        self.identifier = identifier
        self.cause = cause
        super().__init__(f"{self.operation} Keyspaces Table ({identifier}): {cause}")


class TableCreateError(OperationError):
    operation = "creating"


class TableReadError(OperationError):
    operation = "reading"


class TableUpdateError(OperationError):
    operation = "updating"


class TableDeleteError(OperationError):
    operation = "deleting"


class TableWaitError(OperationError):
    """Raised when a table never reaches its terminal status."""

    def __init__(self, identifier: str, action: str, cause: Exception):
        self.operation = f"waiting for {action} of"
        self.action = action
        super().__init__(identifier, cause)

    @property
    def timed_out(self) -> bool:
        return isinstance(self.cause, WaitTimeoutError)


class TagListError(OperationError):
    operation = "listing tags for"


class TagSyncError(OperationError):
    operation = "updating tags for"
