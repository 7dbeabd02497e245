"""
Account, submission and self-evaluation data models
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from enum import Enum


class SubmissionStatus(str, Enum):
    """Where a submission is in its life cycle"""
    FUTURE = "future"
    OPEN = "open"
    EXTENDED = "extended"
    OVERTIME = "overtime"
    SELF_EVAL = "self_eval"
    EXTENDED_EVAL = "extended_eval"
    CLOSED = "closed"

    def describe(self) -> str:
        return _STATUS_TEXT[self]

    @property
    def in_self_eval(self) -> bool:
        """True while self-evaluation can be edited"""
        return self in (SubmissionStatus.OVERTIME, SubmissionStatus.SELF_EVAL, SubmissionStatus.EXTENDED_EVAL)


_STATUS_TEXT = {
    SubmissionStatus.FUTURE: "future",
    SubmissionStatus.OPEN: "open for submission",
    SubmissionStatus.EXTENDED: "open for submission (extended)",
    SubmissionStatus.OVERTIME: "overtime submission or self-eval",
    SubmissionStatus.SELF_EVAL: "open for self evaluation",
    SubmissionStatus.EXTENDED_EVAL: "open for self evaluation (extended)",
    SubmissionStatus.CLOSED: "closed",
}


class EvalStatus(str, Enum):
    """Progress of a submission's self-evaluation"""
    EMPTY = "empty"
    STARTED = "started"
    OVERDUE = "overdue"
    COMPLETE = "complete"


class PartnerStatus(str, Enum):
    """State of a partner request, from the acting user's side"""
    OUTGOING = "outgoing"
    INCOMING = "incoming"
    ACCEPTED = "accepted"
    CANCELED = "canceled"


class PartnerAction(str, Enum):
    """What `gsc partner` can do with a request"""
    REQUEST = "request"
    ACCEPT = "accept"
    CANCEL = "cancel"

    def status(self) -> PartnerStatus:
        """Request status the server is asked to record"""
        return _PARTNER_STATUS[self]


_PARTNER_STATUS = {
    PartnerAction.REQUEST: PartnerStatus.OUTGOING,
    PartnerAction.ACCEPT: PartnerStatus.ACCEPTED,
    PartnerAction.CANCEL: PartnerStatus.CANCELED,
}


class EvalType(str, Enum):
    """How a self-evaluation item is scored"""
    BOOLEAN = "boolean"
    SCALE = "scale"
    INFORMATIONAL = "informational"


@dataclass
class PartnerRequest:
    homework: int
    user: str
    status: PartnerStatus


@dataclass
class SubmissionSummary:
    """One line of a user's submission list"""
    homework: int
    status: SubmissionStatus
    grade: float
    owners: List[str] = field(default_factory=list)


@dataclass
class UserStatus:
    """A user's account as the server reports it"""
    name: str
    role: str
    submissions: List[SubmissionSummary] = field(default_factory=list)
    partner_requests: List[PartnerRequest] = field(default_factory=list)


@dataclass
class Submission:
    """Full status of one homework submission"""
    homework: int
    owners: List[str]
    status: SubmissionStatus
    eval_status: EvalStatus
    open_date: datetime
    due_date: datetime
    eval_date: datetime
    last_modified: datetime
    bytes_used: int
    bytes_quota: int

    @property
    def quota_remaining(self) -> float:
        """Percentage of the byte quota still free"""
        if self.bytes_quota <= 0:
            return 0.0
        return 100.0 * (self.bytes_quota - self.bytes_used) / self.bytes_quota


@dataclass
class SelfEval:
    score: float
    explanation: str
    permalink: str = ""


@dataclass
class GraderEval:
    grader: str
    score: float
    explanation: str
    status: str


@dataclass
class EvalItem:
    """One self-evaluation question with the answers given so far"""
    homework: int
    number: int
    eval_type: EvalType
    prompt: str
    value: float
    self_eval: Optional[SelfEval] = None
    grader_eval: Optional[GraderEval] = None
