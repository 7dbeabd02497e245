"""
HTTP client for the GSC submission server
"""
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, List, Optional
from urllib.parse import quote

import httpx

from ...core.config import ClientConfig
from ...core.constants import CHUNK_SIZE
from ...core.exceptions import (
    HomeworkNotFound,
    NotAuthenticated,
    ServerError,
    TransferFailed,
)
from ...core.interfaces import (
    AccountOperations,
    ListingSource,
    ProgressCallback,
    RemoteFileOperations,
    TransferExecutor,
)
from ...core.logging import get_logger
from ...domain.account.models import (
    EvalItem,
    EvalStatus,
    EvalType,
    GraderEval,
    PartnerRequest,
    PartnerStatus,
    SelfEval,
    Submission,
    SubmissionStatus,
    SubmissionSummary,
    UserStatus,
)
from ...domain.transfer.models import FileType, RemoteEntry
from ..state.login_store import LoginStore, parse_cookies

logger = get_logger(__name__)


def parse_timestamp(value: str) -> datetime:
    """Parse the server's ISO-8601 timestamps (trailing Z allowed)"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def parse_entry(data: Dict[str, Any], homework: int) -> RemoteEntry:
    """
    Convert one file object from a listing response.

    Raises:
        ServerError: If the object is missing fields or has an unknown purpose
    """
    try:
        return RemoteEntry(
            name=data["name"],
            size=int(data["byte_count"]),
            uploaded_at=parse_timestamp(data["upload_time"]),
            file_type=FileType(data["purpose"]),
            homework=homework,
            uri=data.get("uri"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ServerError(200, f"could not understand file listing: {e}") from e


def _owners(data: Dict[str, Any]) -> List[str]:
    owners = [data["owner1"]["name"]]
    if data.get("owner2"):
        owners.append(data["owner2"]["name"])
    return owners


def parse_submission(data: Dict[str, Any]) -> Submission:
    """
    Convert a submission object.

    Raises:
        ServerError: If the object is missing fields or has unknown states
    """
    try:
        return Submission(
            homework=int(data["assignment_number"]),
            owners=_owners(data),
            status=SubmissionStatus(data["status"]),
            eval_status=EvalStatus(data["eval_status"]),
            open_date=parse_timestamp(data["open_date"]),
            due_date=parse_timestamp(data["due_date"]),
            eval_date=parse_timestamp(data["eval_date"]),
            last_modified=parse_timestamp(data["last_modified"]),
            bytes_used=int(data["bytes_used"]),
            bytes_quota=int(data["bytes_quota"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ServerError(200, f"could not understand submission: {e}") from e


def parse_user(data: Dict[str, Any]) -> UserStatus:
    """
    Convert a user object.

    Raises:
        ServerError: If the object is missing fields or has unknown states
    """
    try:
        return UserStatus(
            name=data["name"],
            role=data["role"],
            submissions=[
                SubmissionSummary(
                    homework=int(item["assignment_number"]),
                    status=SubmissionStatus(item["status"]),
                    grade=float(item.get("grade", 0.0)),
                    owners=_owners(item),
                )
                for item in data.get("submissions", [])
            ],
            partner_requests=[
                PartnerRequest(
                    homework=int(item["assignment_number"]),
                    user=item["user"],
                    status=PartnerStatus(item["status"]),
                )
                for item in data.get("partner_requests", [])
            ],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ServerError(200, f"could not understand user: {e}") from e


def parse_eval(data: Dict[str, Any], homework: int) -> EvalItem:
    """
    Convert a self-evaluation item.

    Raises:
        ServerError: If the object is missing fields
    """
    try:
        self_eval = data.get("self_eval")
        grader_eval = data.get("grader_eval")
        return EvalItem(
            homework=homework,
            number=int(data["sequence"]),
            eval_type=EvalType(data["type"]),
            prompt=data["prompt"],
            value=float(data["value"]),
            self_eval=SelfEval(
                score=float(self_eval["score"]),
                explanation=self_eval.get("explanation", ""),
                permalink=self_eval.get("permalink", ""),
            ) if self_eval else None,
            grader_eval=GraderEval(
                grader=grader_eval["grader"],
                score=float(grader_eval["score"]),
                explanation=grader_eval.get("explanation", ""),
                status=grader_eval.get("status", ""),
            ) if grader_eval else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ServerError(200, f"could not understand evaluation: {e}") from e


def _read_chunks(f: BinaryIO, total: int, progress: Optional[ProgressCallback]) -> Iterator[bytes]:
    """Stream an open file, reporting each chunk once it has been handed to httpx"""
    sent = 0
    while True:
        chunk = f.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk
        sent += len(chunk)
        if progress:
            progress(sent, total)


class GscApiClient(ListingSource, TransferExecutor, RemoteFileOperations, AccountOperations):
    """
    Session-cookie authenticated client.

    Submission URIs and listings are cached for the lifetime of the client,
    which is one command invocation.
    """

    def __init__(
        self,
        config: ClientConfig,
        login_store: LoginStore,
        username: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            config: Endpoint and timeout settings
            login_store: Holds the username and session cookie
            username: Act on this user's submissions instead of the logged-in user's
            transport: Custom httpx transport (tests)
        """
        self.config = config
        self.login_store = login_store
        self.username = username
        self._http = httpx.Client(
            base_url=config.endpoint,
            timeout=httpx.Timeout(config.timeout),
            transport=transport,
        )
        self._lock = threading.Lock()
        self._submission_uris: Optional[Dict[int, str]] = None
        self._listings: Dict[int, List[RemoteEntry]] = {}

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GscApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ============================================================
    # Authentication
    # ============================================================

    def auth(self, username: str, password: str) -> None:
        """
        Log in with a password and store the session cookie.

        Raises:
            NotAuthenticated: If the server rejects the password
        """
        try:
            response = self._http.get(f"/api/users/{quote(username, safe='')}", auth=(username, password))
        except httpx.TransportError as e:
            raise self._unreachable(e) from e
        if response.status_code in (401, 403):
            raise NotAuthenticated(self._error_message(response) or "authentication failed")
        self._check(response)
        self._start_session(response, username)
        logger.info(f"Authenticated as {username}")

    def _start_session(self, response: httpx.Response, username: str) -> None:
        pair = parse_cookies(response.headers.get_list("set-cookie"))
        if pair is None:
            raise ServerError(response.status_code, "server did not send a session cookie")

        self.login_store.update(
            username=username,
            cookie=f"{pair[0]}={pair[1]}",
            endpoint=self.config.endpoint,
        )

    def deauth(self) -> None:
        """Forget the session cookie"""
        self.login_store.clear_cookie()

    def whoami(self) -> str:
        """
        Username of the current session.

        Raises:
            NotAuthenticated: If nobody is logged in
        """
        state = self.login_store.load()
        if not state.username:
            raise NotAuthenticated()
        return state.username

    # ============================================================
    # ListingSource
    # ============================================================

    def fetch_listing(self, homework: int) -> List[RemoteEntry]:
        with self._lock:
            if homework not in self._listings:
                uri = self._files_uri(homework)
                data = self._send("GET", uri).json()
                self._listings[homework] = [parse_entry(item, homework) for item in data]
            return list(self._listings[homework])

    # ============================================================
    # TransferExecutor
    # ============================================================

    def upload(
        self,
        local_path: str,
        homework: int,
        remote_name: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        try:
            uri = f"{self._files_uri(homework)}/{quote(remote_name, safe='')}"
            logger.debug(f"PUT {uri}")
            with open(local_path, "rb") as f:
                total = os.fstat(f.fileno()).st_size
                self._send(
                    "PUT", uri,
                    content=_read_chunks(f, total, progress),
                    headers={"Content-Length": str(total)},
                )
        except (OSError, httpx.HTTPError, ServerError, HomeworkNotFound) as e:
            raise TransferFailed(f"{local_path}: {e}") from e
        finally:
            self._invalidate(homework)

    def download(
        self,
        homework: int,
        remote_name: str,
        local_path: str,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        entry = self._entry(homework, remote_name)
        path = Path(local_path)
        partial = path.with_name(f".{path.name}.part")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            response = self._send("GET", entry.uri, stream=True)
            try:
                total = int(response.headers.get("content-length", entry.size))
                received = 0
                with open(partial, "wb") as f:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                        received += len(chunk)
                        if progress:
                            progress(received, total)
            finally:
                response.close()
            os.replace(partial, path)
        except (OSError, httpx.HTTPError, ServerError) as e:
            raise TransferFailed(f"{entry}: {e}") from e
        finally:
            if partial.exists():
                partial.unlink()

    # ============================================================
    # RemoteFileOperations
    # ============================================================

    def read(self, homework: int, remote_name: str) -> bytes:
        return self._send("GET", self._entry(homework, remote_name).uri).content

    def delete(self, homework: int, remote_name: str) -> None:
        self._send("DELETE", self._entry(homework, remote_name).uri)
        self._invalidate(homework)

    def rename(self, homework: int, remote_name: str, new_homework: int, new_name: str) -> None:
        change: Dict[str, Any] = {"overwrite": True}
        if new_homework != homework:
            change["assignment_number"] = new_homework
        if new_name != remote_name:
            change["name"] = new_name
        self._send("PATCH", self._entry(homework, remote_name).uri, json=change)
        self._invalidate(homework)
        self._invalidate(new_homework)

    # ============================================================
    # AccountOperations
    # ============================================================

    def create_account(self, username: str, password: str) -> None:
        """
        Create a user, then keep the session the server opens for it.

        Raises:
            ServerError: If the server refuses, e.g. the name is taken
        """
        try:
            response = self._http.post("/api/users", auth=(username, password))
        except httpx.TransportError as e:
            raise self._unreachable(e) from e
        self._check(response)
        self._start_session(response, username)

    def change_password(self, password: str) -> None:
        self._send("PATCH", self._user_uri(), json={"password": password})

    def fetch_user(self) -> UserStatus:
        return parse_user(self._send("GET", self._user_uri()).json())

    def fetch_submission(self, homework: int) -> Submission:
        return parse_submission(self._send("GET", self._submission_uri(homework)).json())

    def update_partner_request(self, homework: int, partner: str, status: PartnerStatus) -> None:
        change = {
            "partner_requests": [
                {"assignment_number": homework, "user": partner, "status": status.value},
            ],
        }
        self._send("PATCH", self._user_uri(), json=change)

    def fetch_eval(self, homework: int, number: int) -> EvalItem:
        uri = f"{self._evals_uri(homework)}/{number}"
        return parse_eval(self._send("GET", uri).json(), homework)

    def set_self_eval(self, homework: int, number: int, score: float, explanation: str) -> None:
        uri = f"{self._evals_uri(homework)}/{number}/self"
        self._send("PUT", uri, json={"score": score, "explanation": explanation})

    # ============================================================
    # Helpers
    # ============================================================

    def _user(self) -> str:
        return self.username or self.whoami()

    def _user_uri(self) -> str:
        return f"/api/users/{quote(self._user(), safe='')}"

    def _submission_uri(self, homework: int) -> str:
        if self._submission_uris is None:
            data = self._send("GET", f"{self._user_uri()}/submissions").json()
            self._submission_uris = {
                int(item["assignment_number"]): item["uri"] for item in data
            }
        try:
            return self._submission_uris[homework]
        except KeyError:
            raise HomeworkNotFound(homework) from None

    def _files_uri(self, homework: int) -> str:
        return self._submission_uri(homework) + "/files"

    def _evals_uri(self, homework: int) -> str:
        data = self._send("GET", self._submission_uri(homework)).json()
        try:
            return data["evals_uri"]
        except (KeyError, TypeError):
            raise ServerError(200, f"hw{homework} has no self-evaluation") from None

    def _entry(self, homework: int, remote_name: str) -> RemoteEntry:
        for entry in self.fetch_listing(homework):
            if entry.name == remote_name:
                return entry
        raise TransferFailed(f"no such remote file: hw{homework}:{remote_name}")

    def _invalidate(self, homework: int) -> None:
        with self._lock:
            self._listings.pop(homework, None)

    def _send(
        self,
        method: str,
        url: str,
        stream: bool = False,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> httpx.Response:
        """
        Send an authenticated request and check its status.

        Raises:
            NotAuthenticated: No cookie, or 401/403 from the server
            ServerError: Any other non-success status
        """
        cookie = self.login_store.load().cookie
        if not cookie:
            raise NotAuthenticated()

        request = self._http.build_request(method, url, headers={**(headers or {}), "Cookie": cookie}, **kwargs)
        logger.debug(f"> {method} {request.url}")
        try:
            response = self._http.send(request, stream=stream)
        except httpx.TransportError as e:
            raise self._unreachable(e) from e

        pair = parse_cookies(response.headers.get_list("set-cookie"))
        if pair is not None:
            self.login_store.update(cookie=f"{pair[0]}={pair[1]}")

        try:
            self._check(response)
        except Exception:
            response.close()
            raise
        return response

    def _check(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        response.read()
        message = self._error_message(response)
        if response.status_code in (401, 403):
            raise NotAuthenticated(message or "you are not logged in")
        raise ServerError(response.status_code, message or response.reason_phrase)

    def _unreachable(self, error: Exception) -> ServerError:
        return ServerError(0, f"cannot reach {self.config.endpoint}: {error}")

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text.strip()
        if isinstance(data, dict):
            return str(data.get("message", ""))
        return str(data)
