import base64
import os
import shutil
import subprocess
import threading
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Tuple

import pytest
from git import Actor, Repo

from gitclone.config import Settings, get_settings

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
requires_ssh_keygen = pytest.mark.skipif(
    shutil.which("ssh-keygen") is None, reason="ssh-keygen is not installed"
)
network = pytest.mark.skipif(
    os.getenv("GITCLONE_NETWORK_TESTS", "").lower() not in {"1", "true", "yes"},
    reason="network tests are disabled (set GITCLONE_NETWORK_TESTS=1)",
)

TESTER = Actor("Tester", "tester@example.com")


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are cached per process; never leak them between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(clone_directory=str(tmp_path / "clone"))


@pytest.fixture
def remote_repo(tmp_path: Path) -> Path:
    """A local repository with `master` (tagged v1.0) and `feature/login` branches."""
    path = tmp_path / "remote"
    repo = Repo.init(path)
    try:
        (path / "README.md").write_text("hello\n")
        repo.index.add(["README.md"])
        repo.index.commit("initial commit", author=TESTER, committer=TESTER)
        # Independent of the host's init.defaultBranch
        repo.git.branch("-M", "master")
        repo.create_tag("v1.0")

        repo.git.checkout("-b", "feature/login")
        (path / "login.txt").write_text("login\n")
        repo.index.add(["login.txt"])
        repo.index.commit("add login", author=TESTER, committer=TESTER)
        repo.git.checkout("master")
    finally:
        repo.close()
    return path


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    return tmp_path / "clone"


def generate_key(path: Path, passphrase: str = "") -> str:
    """Create an ed25519 key pair and return the private key text."""
    subprocess.run(
        ["ssh-keygen", "-q", "-t", "ed25519", "-N", passphrase, "-C", "tester", "-f", str(path)],
        check=True,
        stdin=subprocess.DEVNULL,
        capture_output=True,
    )
    return path.read_text()


# ---- smart-HTTP remote behind basic auth ----

HTTP_CREDENTIALS = ("tester", "secret")


class _GitHttpBackendHandler(BaseHTTPRequestHandler):
    """Serve repositories under ``project_root`` through `git http-backend`.

    Every request must carry HTTP_CREDENTIALS as basic auth; anything else
    gets a 401 challenge.
    """

    project_root = ""

    def do_GET(self):
        self._serve()

    def do_POST(self):
        self._serve()

    def log_message(self, format, *args):
        pass

    def _authorized(self) -> bool:
        token = base64.b64encode(":".join(HTTP_CREDENTIALS).encode()).decode()
        return self.headers.get("Authorization") == f"Basic {token}"

    def _serve(self):
        if not self._authorized():
            self.send_response(401)
            self.send_header("WWW-Authenticate", 'Basic realm="git"')
            self.send_header("Content-Length", "0")
            self.end_headers()
            return

        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        path, _, query = self.path.partition("?")
        env = {
            **os.environ,
            "GIT_PROJECT_ROOT": self.project_root,
            "GIT_HTTP_EXPORT_ALL": "1",
            "PATH_INFO": path,
            "QUERY_STRING": query,
            "REQUEST_METHOD": self.command,
            "CONTENT_TYPE": self.headers.get("Content-Type", ""),
            "CONTENT_LENGTH": str(len(body)),
            "REMOTE_USER": HTTP_CREDENTIALS[0],
            "REMOTE_ADDR": self.client_address[0],
        }
        if self.headers.get("Content-Encoding"):
            env["HTTP_CONTENT_ENCODING"] = self.headers["Content-Encoding"]
        if self.headers.get("Git-Protocol"):
            env["GIT_PROTOCOL"] = self.headers["Git-Protocol"]

        proc = subprocess.run(
            ["git", "http-backend"], input=body, env=env, capture_output=True, check=False
        )
        head, sep, payload = proc.stdout.partition(b"\r\n\r\n")
        if not sep:
            head, _, payload = proc.stdout.partition(b"\n\n")

        status = 200
        headers = []
        for line in head.decode("latin-1").splitlines():
            name, _, value = line.partition(":")
            name, value = name.strip(), value.strip()
            if name.lower() == "status":
                status = int(value.split()[0])
            elif name and name.lower() != "content-length":
                headers.append((name, value))

        self.send_response(status)
        for name, value in headers:
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)


@dataclass
class HttpRemote:
    url: str
    credentials: Tuple[str, str]


@pytest.fixture
def http_remote(remote_repo: Path, tmp_path: Path):
    """`remote_repo` served over smart HTTP on 127.0.0.1, basic auth required."""
    handler = type(
        "Handler", (_GitHttpBackendHandler,), {"project_root": str(tmp_path)}
    )
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield HttpRemote(
            url=f"http://127.0.0.1:{server.server_port}/{remote_repo.name}/.git",
            credentials=HTTP_CREDENTIALS,
        )
    finally:
        server.shutdown()
        server.server_close()
        thread.join()
