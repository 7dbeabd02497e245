"""
Wildcard matching against a homework listing

Only ``*`` (any run of characters, possibly empty) and ``?`` (exactly one
character) are special. Every other character, including ``[`` and ``]``,
matches itself. Patterns are anchored to the whole name and case-sensitive.
"""
import re
from functools import lru_cache
from typing import Iterable, List, Optional, Pattern

from ...core.exceptions import NoMatch
from .models import RemoteEntry, RemoteRef, FileType


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Pattern[str]:
    """
    Translate a glob pattern into an anchored regular expression.

    Args:
        pattern: Pattern using * and ?

    Returns:
        Compiled regex that must match the full name
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def matches(pattern: str, name: str) -> bool:
    """Check whether name matches pattern"""
    return compile_pattern(pattern).fullmatch(name) is not None


def match_entries(
    pattern: Optional[str],
    entries: Iterable[RemoteEntry],
    include_logs: bool = False,
) -> List[RemoteEntry]:
    """
    Select listing entries matching a pattern.

    A None pattern selects the whole homework. Whole-homework selections and
    wildcard patterns leave out log files unless include_logs is set; a name
    without wildcards selects a log file like any other. Results keep the
    listing's order.

    Args:
        pattern: Glob pattern or None for the whole homework
        entries: Listing in server order
        include_logs: Whether whole-homework and wildcard selections include logs

    Returns:
        Matching entries
    """
    if pattern is None:
        return [
            entry for entry in entries
            if include_logs or entry.file_type != FileType.LOG
        ]

    skip_logs = not include_logs and any(c in pattern for c in "*?")
    regex = compile_pattern(pattern)
    return [
        entry for entry in entries
        if regex.fullmatch(entry.name)
        and not (skip_logs and entry.file_type == FileType.LOG)
    ]


def match_required(
    ref: RemoteRef,
    entries: Iterable[RemoteEntry],
    include_logs: bool = False,
) -> List[RemoteEntry]:
    """
    Like match_entries, but an explicit pattern must match something.

    An empty whole-homework selection is a valid empty result.

    Raises:
        NoMatch: If a pattern matched no entry
    """
    found = match_entries(ref.pattern, entries, include_logs=include_logs)
    if not found and not ref.is_whole_homework:
        raise NoMatch(str(ref))
    return found
