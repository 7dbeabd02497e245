"""
gsc - command-line client for the GSC homework submission server

Provides:
- Uploading and downloading submission files (cp), with wildcard specs
  like hw3:*.c and whole-homework downloads into src/, test/ and Resources/
- Listing, printing, removing and renaming remote files (ls, cat, rm, mv)
- Password login with a stored session cookie (auth, deauth, whoami)
"""

__version__ = "0.1.0"

from .core.config import ClientConfig
from .domain.transfer import (
    RemoteRef,
    LocalRef,
    RemoteEntry,
    FileType,
    CpForm,
    OverwritePolicy,
    TransferItem,
    TransferPlan,
    PlanReport,
    TransferService,
    parse_spec,
    match_entries,
)
from .domain.files import RemoteFileService

__all__ = [
    "__version__",
    "ClientConfig",
    "RemoteRef",
    "LocalRef",
    "RemoteEntry",
    "FileType",
    "CpForm",
    "OverwritePolicy",
    "TransferItem",
    "TransferPlan",
    "PlanReport",
    "TransferService",
    "RemoteFileService",
    "parse_spec",
    "match_entries",
]
