"""
Transfer data models
"""
import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union
from enum import Enum

from ...core.constants import SOURCE_DIR, TEST_DIR, RESOURCE_DIR


class FileType(str, Enum):
    """Declared purpose of a submitted file"""
    SOURCE = "source"
    TEST = "test"
    CONFIG = "config"
    RESOURCE = "resource"
    LOG = "log"

    def to_char(self) -> str:
        """Single-letter tag used in listings"""
        return self.value[0]

    def layout_dir(self) -> Optional[str]:
        """
        Subdirectory of a reconstructed project this type belongs in.

        Returns "" for the project root and None for types that are
        never reconstructed.
        """
        return _LAYOUT_DIRS[self]


_LAYOUT_DIRS = {
    FileType.SOURCE: SOURCE_DIR,
    FileType.TEST: TEST_DIR,
    FileType.RESOURCE: RESOURCE_DIR,
    FileType.CONFIG: "",
    FileType.LOG: None,
}


class LocalKind(str, Enum):
    """What a local path currently refers to"""
    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


class CpForm(str, Enum):
    """The five shapes a cp invocation can take"""
    UPLOAD_1 = "upload1"
    UPLOAD_N = "uploadN"
    DOWNLOAD_1 = "download1"
    DOWNLOAD_N = "downloadN"
    DOWNLOAD_ALL = "downloadAll"


class OverwritePolicy(str, Enum):
    """What to do when a download would replace an existing file"""
    FORCE = "force"
    INTERACTIVE = "interactive"
    NEVER = "never"
    PROMPT_DEFAULT = "prompt"

    @classmethod
    def from_flags(cls, force: bool = False, interactive: bool = False, never: bool = False,
                   default: Optional["OverwritePolicy"] = None) -> "OverwritePolicy":
        """
        Select the policy from mutually exclusive command-line flags.

        Raises:
            ValueError: If more than one flag is set
        """
        chosen = [policy for flag, policy in (
            (force, cls.FORCE),
            (interactive, cls.INTERACTIVE),
            (never, cls.NEVER),
        ) if flag]
        if len(chosen) > 1:
            raise ValueError("-f, -i and -n are mutually exclusive")
        if chosen:
            return chosen[0]
        return default or cls.PROMPT_DEFAULT


class OverwriteAnswer(str, Enum):
    """Answer to an overwrite prompt"""
    YES = "yes"
    NO = "no"
    ALL = "all"
    NONE = "none"


class TransferDirection(str, Enum):
    """Transfer direction"""
    DOWNLOAD = "download"  # remote → local
    UPLOAD = "upload"      # local → remote


class ItemStatus(str, Enum):
    """Outcome of one transfer item"""
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class RemoteRef:
    """
    Reference to a homework or to files within it (hw<N> or hw<N>:<pattern>).

    A pattern of None denotes the whole homework.
    """
    homework: int
    pattern: Optional[str] = None

    @property
    def is_whole_homework(self) -> bool:
        return self.pattern is None

    @property
    def has_wildcards(self) -> bool:
        return self.pattern is not None and any(c in self.pattern for c in "*?")

    def __str__(self) -> str:
        return f"hw{self.homework}:{self.pattern or ''}"


@dataclass(frozen=True)
class LocalRef:
    """Local path as given on the command line; its kind is looked up later"""
    path: str

    @property
    def basename(self) -> str:
        return posixpath.basename(self.path.rstrip("/"))

    @property
    def ends_in_slash(self) -> bool:
        return self.path.endswith("/")

    def __str__(self) -> str:
        return self.path


Ref = Union[RemoteRef, LocalRef]


@dataclass(frozen=True)
class RemoteEntry:
    """One file from a homework listing"""
    name: str
    size: int
    uploaded_at: datetime
    file_type: FileType
    homework: int = 0
    uri: Optional[str] = None

    @property
    def ref(self) -> RemoteRef:
        """Exact reference to this entry"""
        return RemoteRef(self.homework, self.name)

    def __str__(self) -> str:
        return f"hw{self.homework}:{self.name}"


@dataclass(frozen=True)
class TransferItem:
    """A single planned upload or download"""
    direction: TransferDirection
    local_path: str
    homework: int
    remote_name: str

    @property
    def remote(self) -> RemoteRef:
        return RemoteRef(self.homework, self.remote_name)

    @property
    def source(self) -> str:
        if self.direction == TransferDirection.UPLOAD:
            return self.local_path
        return str(self.remote)

    @property
    def destination(self) -> str:
        if self.direction == TransferDirection.UPLOAD:
            return str(self.remote)
        return self.local_path

    def __str__(self) -> str:
        return f"‘{self.source}’ -> ‘{self.destination}’"


@dataclass
class TransferPlan:
    """Ordered transfer items for one cp invocation"""
    form: CpForm
    items: List[TransferItem] = field(default_factory=list)
    # Directories that must exist before items run (DownloadAll only)
    directories: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass
class ItemResult:
    """Transfer item together with its outcome"""
    item: TransferItem
    status: ItemStatus = ItemStatus.PENDING
    error: Optional[str] = None


@dataclass
class PlanReport:
    """Outcome of executing a plan"""
    form: CpForm
    results: List[ItemResult] = field(default_factory=list)
    interrupted: bool = False
    # Error that stopped the whole run, e.g. an expired session
    error: Optional[Exception] = None

    def _with_status(self, status: ItemStatus) -> List[ItemResult]:
        return [r for r in self.results if r.status == status]

    @property
    def completed(self) -> List[ItemResult]:
        return self._with_status(ItemStatus.COMPLETED)

    @property
    def skipped(self) -> List[ItemResult]:
        return self._with_status(ItemStatus.SKIPPED)

    @property
    def failed(self) -> List[ItemResult]:
        return self._with_status(ItemStatus.FAILED)

    @property
    def cancelled(self) -> List[ItemResult]:
        return self._with_status(ItemStatus.CANCELLED)

    @property
    def success(self) -> bool:
        """True when no item failed and the run was neither interrupted nor aborted"""
        return not self.failed and not self.interrupted and self.error is None
