import base64
import json

import httpx
import pytest

from gsc.core.config import ClientConfig
from gsc.core.constants import CHUNK_SIZE
from gsc.core.exceptions import HomeworkNotFound, NotAuthenticated, ServerError, TransferFailed
from gsc.domain.account import EvalType, PartnerStatus, SubmissionStatus
from gsc.domain.transfer import FileType, ItemStatus, TransferService
from gsc.infrastructure.api import GscApiClient, parse_entry, parse_timestamp
from gsc.infrastructure.state import LoginState, LoginStore

ENDPOINT = "http://gsc.test"
FILES_PREFIX = "/api/submissions/11/files/"


SUBMISSION = {
    "assignment_number": 1,
    "id": 11,
    "uri": "/api/submissions/11",
    "grade": 0.0,
    "files_uri": "/api/submissions/11/files",
    "evals_uri": "/api/submissions/11/evals",
    "owner1": {"name": "alice", "uri": "/api/users/alice"},
    "owner2": {"name": "bob", "uri": "/api/users/bob"},
    "bytes_used": 100,
    "bytes_quota": 400,
    "open_date": "2024-01-08T00:00:00Z",
    "due_date": "2024-01-15T23:59:00Z",
    "eval_date": "2024-01-17T23:59:00Z",
    "last_modified": "2024-01-15T12:30:00Z",
    "eval_status": "started",
    "status": "self_eval",
}

USER = {
    "name": "alice",
    "uri": "/api/users/alice",
    "submissions_uri": "/api/users/alice/submissions",
    "role": "student",
    "exam_grades": [],
    "partner_requests": [{"assignment_number": 2, "user": "carol", "status": "incoming"}],
    "submissions": [{
        "assignment_number": 1, "id": 11, "uri": "/api/submissions/11", "status": "self_eval",
        "grade": 0.0, "owner1": {"name": "alice", "uri": "/api/users/alice"},
    }],
}

EVAL = {
    "uri": "/api/submissions/11/evals/1",
    "sequence": 1,
    "submission_uri": "/api/submissions/11",
    "type": "scale",
    "prompt": "Are the tests thorough?",
    "value": 3.0,
    "self_eval": {"uri": "/x", "score": 0.5, "explanation": "some", "permalink": "abc"},
}


class FakeApi:
    """httpx.MockTransport handler imitating the submission server"""

    def __init__(self):
        self.requests = []
        self.cookie = "JSESSIONID=abc"
        self.password = "pw"
        self.files = {"a.c": b"int a;\n", "run.log": b"ok\n"}
        self.refresh_cookie = None
        self.fail_downloads = False
        self.expire_after_put = False
        self.users = {"alice"}
        self.user_changes = []
        self.self_evals = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/users" and request.method == "POST":
            name = base64.b64decode(request.headers["authorization"].split()[1]).decode().split(":", 1)[0]
            if name in self.users:
                return httpx.Response(409, json={"message": f"user already exists: {name}"})
            self.users.add(name)
            return httpx.Response(
                201, json={"name": name},
                headers={"set-cookie": "JSESSIONID=new; Path=/"},
            )

        if path == "/api/users/alice" and "authorization" in request.headers:
            expected = "Basic " + base64.b64encode(f"alice:{self.password}".encode()).decode()
            if request.headers.get("authorization") != expected:
                return httpx.Response(401, json={"message": "bad username or password"})
            return httpx.Response(
                200, json={"name": "alice"},
                headers={"set-cookie": f"{self.cookie}; Path=/; HttpOnly"},
            )

        if request.headers.get("cookie") != self.cookie:
            return httpx.Response(401, json={"message": "session expired"})

        headers = {}
        if self.refresh_cookie:
            headers["set-cookie"] = f"{self.refresh_cookie}; Path=/"
            self.cookie = self.refresh_cookie

        if path.endswith("/submissions"):
            return httpx.Response(200, headers=headers, json=[
                {"assignment_number": 1, "uri": "/api/submissions/11"},
                {"assignment_number": 2, "uri": "/api/submissions/12"},
            ])

        if path == "/api/users/alice":
            if request.method == "PATCH":
                self.user_changes.append(json.loads(request.content))
                return httpx.Response(200, json={})
            return httpx.Response(200, json=USER)

        if path == "/api/submissions/11":
            return httpx.Response(200, json=SUBMISSION)

        if path == "/api/submissions/11/evals/1":
            return httpx.Response(200, json=EVAL)

        if path == "/api/submissions/11/evals/1/self" and request.method == "PUT":
            self.self_evals.append(json.loads(request.content))
            return httpx.Response(200, json={})

        if path == "/api/submissions/11/files":
            return httpx.Response(200, headers=headers, json=[self._describe(name) for name in self.files])

        if path == "/api/submissions/12/files":
            return httpx.Response(200, json=[])

        if path.startswith(FILES_PREFIX):
            name = path[len(FILES_PREFIX):]
            if request.method == "PUT":
                self.files[name] = request.content
                if self.expire_after_put:
                    self.cookie = "JSESSIONID=gone"
                return httpx.Response(201)
            if name not in self.files:
                return httpx.Response(404, json={"message": f"no such file: {name}"})
            if request.method == "GET":
                if self.fail_downloads:
                    return httpx.Response(500, text="disk on fire")
                return httpx.Response(200, content=self.files[name])
            if request.method == "DELETE":
                del self.files[name]
                return httpx.Response(204)
            if request.method == "PATCH":
                return httpx.Response(200, json={})

        return httpx.Response(404, json={"message": "not found"})

    def _describe(self, name):
        return {
            "name": name,
            "byte_count": len(self.files[name]),
            "upload_time": "2024-01-15T12:30:00Z",
            "purpose": "log" if name.endswith(".log") else "source",
            "uri": FILES_PREFIX + name,
        }

    def calls(self, method=None):
        return [
            (r.method, r.url.path) for r in self.requests
            if method is None or r.method == method
        ]


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def store(tmp_path):
    store = LoginStore(tmp_path / "login")
    store.save(LoginState(username="alice", cookie="JSESSIONID=abc", endpoint=ENDPOINT))
    return store


@pytest.fixture
def client(api, store):
    with GscApiClient(ClientConfig(endpoint=ENDPOINT), store, transport=httpx.MockTransport(api)) as c:
        yield c


def test_parse_timestamp_with_z():
    stamp = parse_timestamp("2024-01-15T12:30:00Z")
    assert (stamp.year, stamp.hour, stamp.utcoffset().total_seconds()) == (2024, 12, 0)


def test_parse_entry_rejects_unknown_purpose():
    with pytest.raises(ServerError):
        parse_entry({"name": "x", "byte_count": 1, "upload_time": "2024-01-01T00:00:00", "purpose": "??"}, 1)


class TestAuth:

    def test_stores_session_cookie(self, api, tmp_path):
        store = LoginStore(tmp_path / "login")
        client = GscApiClient(ClientConfig(endpoint=ENDPOINT), store, transport=httpx.MockTransport(api))

        client.auth("alice", "pw")

        state = store.load()
        assert (state.username, state.cookie, state.endpoint) == ("alice", "JSESSIONID=abc", ENDPOINT)
        assert client.whoami() == "alice"

    def test_wrong_password(self, api, tmp_path):
        client = GscApiClient(ClientConfig(endpoint=ENDPOINT), LoginStore(tmp_path / "login"),
                              transport=httpx.MockTransport(api))
        with pytest.raises(NotAuthenticated, match="bad username or password"):
            client.auth("alice", "nope")

    def test_deauth_forgets_cookie(self, client, store):
        client.deauth()
        assert store.load().cookie == ""
        with pytest.raises(NotAuthenticated):
            client.fetch_listing(1)

    def test_whoami_without_login(self, api, tmp_path):
        client = GscApiClient(ClientConfig(endpoint=ENDPOINT), LoginStore(tmp_path / "login"),
                              transport=httpx.MockTransport(api))
        with pytest.raises(NotAuthenticated):
            client.whoami()
        assert api.requests == []


class TestListing:

    def test_entries(self, client):
        entries = client.fetch_listing(1)

        assert [e.name for e in entries] == ["a.c", "run.log"]
        assert entries[0].size == 7
        assert entries[0].homework == 1
        assert entries[1].file_type == FileType.LOG

    def test_cached_per_client(self, client, api):
        client.fetch_listing(1)
        client.fetch_listing(1)
        client.fetch_listing(2)
        assert api.calls("GET") == [
            ("GET", "/api/users/alice/submissions"),
            ("GET", "/api/submissions/11/files"),
            ("GET", "/api/submissions/12/files"),
        ]

    def test_unknown_homework(self, client):
        with pytest.raises(HomeworkNotFound):
            client.fetch_listing(7)

    def test_other_user(self, api, store):
        client = GscApiClient(ClientConfig(endpoint=ENDPOINT), store, username="bob",
                              transport=httpx.MockTransport(api))
        client.fetch_listing(2)
        assert api.calls()[0] == ("GET", "/api/users/bob/submissions")

    def test_expired_session(self, client, api):
        api.cookie = "JSESSIONID=other"
        with pytest.raises(NotAuthenticated, match="session expired"):
            client.fetch_listing(1)

    def test_cookie_refreshed_from_response(self, client, api, store):
        api.refresh_cookie = "JSESSIONID=fresh"
        client.fetch_listing(1)
        assert store.load().cookie == "JSESSIONID=fresh"

    def test_unreachable_server(self, store):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = GscApiClient(ClientConfig(endpoint=ENDPOINT), store, transport=httpx.MockTransport(refuse))
        with pytest.raises(ServerError, match="cannot reach"):
            client.fetch_listing(1)


class TestTransfers:

    def test_upload(self, client, api, tmp_path):
        local = tmp_path / "circle.c"
        local.write_bytes(b"int circle;\n")

        client.upload(str(local), 1, "my file.c")

        put = [r for r in api.requests if r.method == "PUT"][0]
        assert put.url.raw_path == b"/api/submissions/11/files/my%20file.c"
        assert api.files["my file.c"] == b"int circle;\n"

    def test_upload_invalidates_listing(self, client, api, tmp_path):
        local = tmp_path / "b.c"
        local.write_bytes(b"b")
        client.fetch_listing(1)

        client.upload(str(local), 1, "b.c")

        assert "b.c" in [e.name for e in client.fetch_listing(1)]

    def test_upload_missing_local_file(self, client, tmp_path):
        with pytest.raises(TransferFailed):
            client.upload(str(tmp_path / "ghost.c"), 1, "ghost.c")

    def test_upload_reports_progress(self, client, tmp_path):
        local = tmp_path / "big.c"
        local.write_bytes(b"x" * (3 * CHUNK_SIZE + 10))
        seen = []

        client.upload(str(local), 1, "big.c", progress=lambda done, total: seen.append((done, total)))

        total = 3 * CHUNK_SIZE + 10
        assert seen == [(CHUNK_SIZE, total), (2 * CHUNK_SIZE, total), (3 * CHUNK_SIZE, total), (total, total)]

    def test_download_reports_progress(self, client, tmp_path):
        seen = []
        client.download(1, "a.c", str(tmp_path / "a.c"), progress=lambda done, total: seen.append((done, total)))
        assert seen[-1] == (7, 7)

    def test_download(self, client, tmp_path):
        target = tmp_path / "out" / "a.c"

        client.download(1, "a.c", str(target))

        assert target.read_bytes() == b"int a;\n"
        assert sorted(p.name for p in target.parent.iterdir()) == ["a.c"]

    def test_download_failure_leaves_nothing(self, client, api, tmp_path):
        api.fail_downloads = True
        target = tmp_path / "a.c"

        with pytest.raises(TransferFailed, match="disk on fire"):
            client.download(1, "a.c", str(target))

        assert list(tmp_path.iterdir()) == [tmp_path / "login"]

    def test_download_unknown_name(self, client, tmp_path):
        with pytest.raises(TransferFailed, match="no such remote file"):
            client.download(1, "zzz.c", str(tmp_path / "zzz.c"))


class TestFileOperations:

    def test_read(self, client):
        assert client.read(1, "run.log") == b"ok\n"

    def test_delete(self, client, api):
        client.delete(1, "a.c")
        assert ("DELETE", FILES_PREFIX + "a.c") in api.calls()
        assert [e.name for e in client.fetch_listing(1)] == ["run.log"]

    def test_rename_within_homework(self, client, api):
        client.rename(1, "a.c", 1, "b.c")
        patch = [r for r in api.requests if r.method == "PATCH"][0]
        assert json.loads(patch.content) == {"overwrite": True, "name": "b.c"}

    def test_move_to_other_homework(self, client, api):
        client.rename(1, "a.c", 2, "a.c")
        patch = [r for r in api.requests if r.method == "PATCH"][0]
        assert json.loads(patch.content) == {"overwrite": True, "assignment_number": 2}

    def test_read_unknown_name(self, client):
        with pytest.raises(TransferFailed):
            client.read(1, "missing.c")


class TestCpAgainstServer:

    def test_upload_to_unknown_homework_sends_nothing(self, client, api, fs, workdir):
        (workdir / "a.c").write_text("int a;")
        (workdir / "b.c").write_text("int b;")

        with pytest.raises(HomeworkNotFound):
            TransferService(client, client, fs).cp(["a.c", "b.c"], "hw7:")

        assert api.calls("PUT") == []

    def test_session_lost_partway_keeps_the_report(self, client, api, fs, workdir):
        (workdir / "a.c").write_text("int a;")
        (workdir / "b.c").write_text("int b;")
        api.expire_after_put = True

        report = TransferService(client, client, fs).cp(["a.c", "b.c"], "hw1:")

        assert [r.status for r in report.results] == [ItemStatus.COMPLETED, ItemStatus.FAILED]
        assert isinstance(report.error, NotAuthenticated)
        assert api.files["a.c"] == b"int a;"


class TestAccount:

    def test_create_account_logs_in(self, api, tmp_path):
        store = LoginStore(tmp_path / "login")
        client = GscApiClient(ClientConfig(endpoint=ENDPOINT), store, transport=httpx.MockTransport(api))

        client.create_account("dave", "pw")

        assert "dave" in api.users
        assert (store.load().username, store.load().cookie) == ("dave", "JSESSIONID=new")

    def test_create_taken_name(self, client):
        with pytest.raises(ServerError, match="already exists"):
            client.create_account("alice", "pw")

    def test_change_password(self, client, api):
        client.change_password("s3cret")
        assert api.user_changes == [{"password": "s3cret"}]

    def test_fetch_user(self, client):
        user = client.fetch_user()

        assert (user.name, user.role) == ("alice", "student")
        assert user.submissions[0].owners == ["alice"]
        assert user.partner_requests[0].status == PartnerStatus.INCOMING

    def test_fetch_submission(self, client):
        submission = client.fetch_submission(1)

        assert submission.owners == ["alice", "bob"]
        assert submission.status == SubmissionStatus.SELF_EVAL
        assert submission.quota_remaining == 75.0
        assert submission.due_date.day == 15

    def test_fetch_submission_unknown_homework(self, client):
        with pytest.raises(HomeworkNotFound):
            client.fetch_submission(5)

    def test_partner_request(self, client, api):
        client.update_partner_request(1, "bob", PartnerStatus.OUTGOING)
        assert api.user_changes == [
            {"partner_requests": [{"assignment_number": 1, "user": "bob", "status": "outgoing"}]},
        ]

    def test_fetch_eval(self, client):
        item = client.fetch_eval(1, 1)

        assert item.eval_type == EvalType.SCALE
        assert item.self_eval.score == 0.5
        assert item.grader_eval is None

    def test_set_self_eval(self, client, api):
        client.set_self_eval(1, 1, 1.0, "all covered")
        assert api.self_evals == [{"score": 1.0, "explanation": "all covered"}]
