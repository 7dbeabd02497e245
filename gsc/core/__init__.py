"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import (
    ListingSource,
    TransferExecutor,
    RemoteFileOperations,
    AccountOperations,
    FileSystem,
    PromptProvider,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "ListingSource",
    "TransferExecutor",
    "RemoteFileOperations",
    "AccountOperations",
    "FileSystem",
    "PromptProvider",
]
