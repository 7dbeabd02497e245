"""
Transfer domain module
"""
from .models import (
    FileType,
    LocalKind,
    CpForm,
    OverwritePolicy,
    OverwriteAnswer,
    TransferDirection,
    ItemStatus,
    RemoteRef,
    LocalRef,
    RemoteEntry,
    TransferItem,
    TransferPlan,
    ItemResult,
    PlanReport,
)
from .parser import parse_spec, parse_remote, parse_destination, parse_homework
from .matcher import compile_pattern, matches, match_entries, match_required
from .planner import TransferPlanner, classify, check_unique_destinations
from .conflict import ConflictResolver
from .layout import LayoutReconstructor
from .service import TransferService

__all__ = [
    "FileType",
    "LocalKind",
    "CpForm",
    "OverwritePolicy",
    "OverwriteAnswer",
    "TransferDirection",
    "ItemStatus",
    "RemoteRef",
    "LocalRef",
    "RemoteEntry",
    "TransferItem",
    "TransferPlan",
    "ItemResult",
    "PlanReport",
    "parse_spec",
    "parse_remote",
    "parse_destination",
    "parse_homework",
    "compile_pattern",
    "matches",
    "match_entries",
    "match_required",
    "TransferPlanner",
    "classify",
    "check_unique_destinations",
    "ConflictResolver",
    "LayoutReconstructor",
    "TransferService",
]
