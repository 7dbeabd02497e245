"""
Shared pytest fixtures and fakes for the collaborator interfaces.
"""
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

from gsc.core.exceptions import HomeworkNotFound, NotAuthenticated, ServerError, TransferFailed
from gsc.core.interfaces import (
    AccountOperations,
    ListingSource,
    PromptProvider,
    RemoteFileOperations,
    TransferExecutor,
)
from gsc.domain.account import (
    EvalItem,
    EvalStatus,
    EvalType,
    PartnerStatus,
    Submission,
    SubmissionStatus,
    SubmissionSummary,
    UserStatus,
)
from gsc.domain.transfer.models import FileType, OverwriteAnswer, RemoteEntry
from gsc.infrastructure.fs import LocalFileSystem


UPLOADED = datetime(2024, 1, 15, 12, 30, tzinfo=timezone.utc)


def make_entry(name: str, file_type: FileType = FileType.SOURCE, homework: int = 1, size: int = 10) -> RemoteEntry:
    """Helper to build RemoteEntry instances for tests."""
    return RemoteEntry(
        name=name,
        size=size,
        uploaded_at=UPLOADED,
        file_type=file_type,
        homework=homework,
        uri=f"/api/submissions/{homework}/files/{name}",
    )


class FakeServer(ListingSource, TransferExecutor, RemoteFileOperations, AccountOperations):
    """
    In-memory server: listings per homework plus file contents.

    Downloads write "<contents>" to the local path; uploads are recorded
    and added to the listing.
    """

    def __init__(self, listings: Optional[Dict[int, Sequence[RemoteEntry]]] = None):
        self.listings: Dict[int, List[RemoteEntry]] = {
            hw: list(entries) for hw, entries in (listings or {}).items()
        }
        self.contents: Dict[tuple, bytes] = {}
        self.fetches: List[int] = []
        self.uploads: List[tuple] = []
        self.downloads: List[tuple] = []
        self.deleted: List[tuple] = []
        self.renamed: List[tuple] = []
        self.fail_names: set = set()
        self.expire_on: Optional[str] = None
        self.interrupt_on: Optional[str] = None
        self.username = "student"
        self.logged_in = True
        self.passwords: Dict[str, str] = {}
        self.partner_changes: List[tuple] = []
        self.self_evals: List[tuple] = []
        self.evals: Dict[tuple, EvalItem] = {}

    def add(self, entry: RemoteEntry, contents: bytes = b"") -> None:
        self.listings.setdefault(entry.homework, []).append(entry)
        self.contents[(entry.homework, entry.name)] = contents or f"contents of {entry.name}".encode()

    # ListingSource
    def fetch_listing(self, homework: int) -> List[RemoteEntry]:
        self.fetches.append(homework)
        if homework not in self.listings:
            raise HomeworkNotFound(homework)
        return list(self.listings[homework])

    # TransferExecutor
    def upload(self, local_path: str, homework: int, remote_name: str, progress=None) -> None:
        if remote_name == self.expire_on:
            raise NotAuthenticated("session expired")
        if remote_name in self.fail_names:
            raise TransferFailed(f"{local_path}: server refused")
        self.uploads.append((local_path, homework, remote_name))
        if progress:
            size = Path(local_path).stat().st_size
            progress(size, size)

    def download(self, homework: int, remote_name: str, local_path: str, progress=None) -> None:
        if remote_name == self.interrupt_on:
            raise KeyboardInterrupt
        if remote_name == self.expire_on:
            raise NotAuthenticated("session expired")
        if remote_name in self.fail_names:
            raise TransferFailed(f"hw{homework}:{remote_name}: connection reset")
        self.downloads.append((homework, remote_name, local_path))
        data = self.contents.get((homework, remote_name), remote_name.encode())
        path = Path(local_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if progress:
            progress(len(data) // 2, len(data))
            progress(len(data), len(data))

    # RemoteFileOperations
    def read(self, homework: int, remote_name: str) -> bytes:
        return self.contents.get((homework, remote_name), remote_name.encode())

    def delete(self, homework: int, remote_name: str) -> None:
        self.deleted.append((homework, remote_name))
        self.listings[homework] = [e for e in self.listings[homework] if e.name != remote_name]

    def rename(self, homework: int, remote_name: str, new_homework: int, new_name: str) -> None:
        self.renamed.append((homework, remote_name, new_homework, new_name))

    # Authentication, as the CLI uses it
    def auth(self, username: str, password: str) -> None:
        if self.passwords.get(username) != password:
            raise NotAuthenticated("authentication failed")
        self.username = username
        self.logged_in = True

    def deauth(self) -> None:
        self.logged_in = False

    def whoami(self) -> str:
        if not self.logged_in:
            raise NotAuthenticated()
        return self.username


    # AccountOperations
    def create_account(self, username: str, password: str) -> None:
        if username in self.passwords:
            raise ServerError(409, f"user already exists: {username}")
        self.passwords[username] = password
        self.username = username
        self.logged_in = True

    def change_password(self, password: str) -> None:
        self.passwords[self.whoami()] = password

    def fetch_user(self) -> UserStatus:
        return UserStatus(
            name=self.whoami(),
            role="student",
            submissions=[
                SubmissionSummary(hw, SubmissionStatus.OPEN, 0.0, [self.username])
                for hw in sorted(self.listings)
            ],
        )

    def fetch_submission(self, homework: int) -> Submission:
        if homework not in self.listings:
            raise HomeworkNotFound(homework)
        return Submission(
            homework=homework,
            owners=[self.username],
            status=SubmissionStatus.SELF_EVAL,
            eval_status=EvalStatus.STARTED,
            open_date=UPLOADED,
            due_date=UPLOADED,
            eval_date=UPLOADED,
            last_modified=UPLOADED,
            bytes_used=250,
            bytes_quota=1000,
        )

    def update_partner_request(self, homework: int, partner: str, status: PartnerStatus) -> None:
        if homework not in self.listings:
            raise HomeworkNotFound(homework)
        self.partner_changes.append((homework, partner, status))

    def fetch_eval(self, homework: int, number: int) -> EvalItem:
        try:
            return self.evals[(homework, number)]
        except KeyError:
            raise ServerError(404, f"no such evaluation item: {number}") from None

    def set_self_eval(self, homework: int, number: int, score: float, explanation: str) -> None:
        self.fetch_eval(homework, number)
        self.self_evals.append((homework, number, score, explanation))


def make_eval(homework: int = 1, number: int = 1, prompt: str = "Does it compile?") -> EvalItem:
    return EvalItem(homework=homework, number=number, eval_type=EvalType.BOOLEAN, prompt=prompt, value=2.0)


class ScriptedPrompt(PromptProvider):
    """Prompt provider that replays canned answers and records questions."""

    def __init__(self, answers: Sequence[OverwriteAnswer] = (), password: str = "secret"):
        self.answers = list(answers)
        self.asked: List[str] = []
        self.password = password
        # answers to text prompts, in order; self.password once used up
        self.typed: List[str] = []

    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        self.asked.append(message)
        if self.typed:
            return self.typed.pop(0)
        return self.password

    def ask_overwrite(self, path: str) -> OverwriteAnswer:
        self.asked.append(path)
        return self.answers.pop(0)


@pytest.fixture
def server() -> FakeServer:
    """hw1 with a source, a test, a resource, a config file and a log."""
    fake = FakeServer({1: []})
    fake.add(make_entry("main.c", FileType.SOURCE))
    fake.add(make_entry("test.c", FileType.TEST))
    fake.add(make_entry("data.txt", FileType.RESOURCE))
    fake.add(make_entry("Makefile", FileType.CONFIG))
    fake.add(make_entry("run.log", FileType.LOG))
    return fake


@pytest.fixture
def fs() -> LocalFileSystem:
    return LocalFileSystem()


@pytest.fixture
def workdir(tmp_path, monkeypatch) -> Path:
    """Run the test from an empty temporary directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
