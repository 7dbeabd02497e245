"""
Unified exception definitions
"""
from typing import Optional


class GscError(Exception):
    """Base exception class"""
    pass


class ConfigError(GscError):
    """Configuration error"""
    pass


class NotAuthenticated(GscError):
    """No valid login session"""

    def __init__(self, message: str = "you are not logged in"):
        super().__init__(message)


class HomeworkNotFound(GscError):
    """The server has no submission for the requested homework"""

    def __init__(self, homework: int):
        self.homework = homework
        super().__init__(f"unknown homework: hw{homework}")


class ServerError(GscError):
    """Server answered with a non-success status"""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(f"server error ({status}): {message}")


# ============================================================
# Request and planning errors
#
# All of these are raised before any transfer starts.
# ============================================================

class SpecError(GscError):
    """Malformed or unsatisfiable request"""
    pass


class InvalidHomeworkNumber(SpecError):
    """hw<N> with a missing or non-positive number"""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"invalid homework number in ‘{token}’")


class NoMatch(SpecError):
    """Pattern matched no remote file"""

    def __init__(self, spec: str):
        self.spec = spec
        super().__init__(f"no remote files match ‘{spec}’")


class AmbiguousSpec(SpecError):
    """Pattern matched several files where one is required"""

    def __init__(self, spec: str, names: Optional[list] = None):
        self.spec = spec
        self.names = list(names or [])
        message = f"‘{spec}’ matches more than one file"
        if self.names:
            message += f": {', '.join(self.names)}"
        super().__init__(message)


class UnsupportedCpForm(SpecError):
    """Source/destination combination that cp does not support"""
    pass


class DestinationNotDirectory(SpecError):
    """Multiple sources need an existing destination directory"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"destination is not a directory: {path}")


class DuplicateDestination(SpecError):
    """Two planned items write the same destination"""

    def __init__(self, destination: str):
        self.destination = destination
        super().__init__(f"more than one file would be written to ‘{destination}’")


class LayoutConflict(SpecError):
    """A layout subdirectory path exists as a regular file"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"cannot create directory ‘{path}’: a file is in the way")


class WholeHomeworkRequiresAll(SpecError):
    """Whole-homework reference used without -a/--all"""

    def __init__(self, spec: str):
        self.spec = spec
        super().__init__(f"‘{spec}’ names a whole homework; use -a/--all")


class BadLocalPath(SpecError):
    """Local source path is missing or has no usable file name"""

    def __init__(self, path: str, reason: str = "bad local path"):
        self.path = path
        super().__init__(f"{reason}: {path}")


class InvalidScore(SpecError):
    """Self-evaluation score outside [0.0, 1.0]"""

    def __init__(self, score: float):
        self.score = score
        super().__init__(f"score must be between 0.0 and 1.0, got {score}")


# ============================================================
# Account errors
# ============================================================

class PasswordMismatch(GscError):
    """New password and its confirmation differ"""

    def __init__(self):
        super().__init__("passwords do not match")


# ============================================================
# Execution errors
# ============================================================

class TransferFailed(GscError):
    """A single upload or download failed"""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)
