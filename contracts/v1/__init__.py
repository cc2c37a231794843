"""v1 log entry contracts."""

__version__ = "1.0.0"

from .schemas import LogEntryContract, LogEntryInput

__all__ = [
    "__version__",
    "LogEntryContract",
    "LogEntryInput",
]
