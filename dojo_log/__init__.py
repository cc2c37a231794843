"""Personal martial-arts training log: local log store and dictation."""

__version__ = "1.0.0"

from .dictation import DictationController
from .errors import (
    ControllerDestroyed,
    DictationError,
    DojoLogError,
    EngineUnavailable,
    InsertFailed,
    InvalidEntry,
    QueryFailed,
    StorageError,
    StorageUnavailable,
)
from .form import LogForm, submit_log
from .models import DictationSession, DictationState, LogEntry, Source
from .persistence import LogStore
from .resources import AppResources

__all__ = [
    "__version__",
    "AppResources",
    "DictationController",
    "DictationSession",
    "DictationState",
    "LogEntry",
    "LogForm",
    "LogStore",
    "Source",
    "submit_log",
    "DojoLogError",
    "StorageError",
    "StorageUnavailable",
    "InsertFailed",
    "QueryFailed",
    "InvalidEntry",
    "EngineUnavailable",
    "DictationError",
    "ControllerDestroyed",
]
