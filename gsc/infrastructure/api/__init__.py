"""
GSC server API
"""
from .client import (
    GscApiClient,
    parse_entry,
    parse_eval,
    parse_submission,
    parse_timestamp,
    parse_user,
)

__all__ = [
    "GscApiClient",
    "parse_entry",
    "parse_eval",
    "parse_submission",
    "parse_timestamp",
    "parse_user",
]
