"""
Account domain module: status, passwords, partners and self-evaluation
"""
from .models import (
    SubmissionStatus,
    EvalStatus,
    PartnerStatus,
    PartnerAction,
    EvalType,
    PartnerRequest,
    SubmissionSummary,
    UserStatus,
    Submission,
    SelfEval,
    GraderEval,
    EvalItem,
)
from .service import AccountService

__all__ = [
    "SubmissionStatus",
    "EvalStatus",
    "PartnerStatus",
    "PartnerAction",
    "EvalType",
    "PartnerRequest",
    "SubmissionSummary",
    "UserStatus",
    "Submission",
    "SelfEval",
    "GraderEval",
    "EvalItem",
    "AccountService",
]
