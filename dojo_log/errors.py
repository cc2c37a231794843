"""Exception types for the dojo-log system."""


class DojoLogError(Exception):
    """Base exception for all dojo-log failures."""


class StorageError(DojoLogError):
    """Base exception for persistence failures."""


class StorageUnavailable(StorageError):
    """Raised when the on-device database cannot be opened.

    Cached by the store: every later call in the same process raises the
    same instance instead of retrying.
    """


class InsertFailed(StorageError):
    """Raised when a single log write fails. Nothing was persisted."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class QueryFailed(StorageError):
    """Raised when a read or delete against the store fails."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class InvalidEntry(DojoLogError):
    """Raised when form values do not form a valid log entry."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class EngineUnavailable(DojoLogError):
    """Raised when no usable speech engine is present (or it is bound elsewhere)."""


class DictationError(DojoLogError):
    """A mid-session speech engine fault. Recovered by the controller."""

    def __init__(self, message: str, cause: object = None):
        super().__init__(message)
        self.cause = cause


class ControllerDestroyed(DojoLogError):
    """Raised when a torn-down dictation controller is used again."""
