"""
Login dotfile storage implementation
"""
import json
import os
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional, Tuple, Dict, Any, Iterable

from ...core.constants import DEFAULT_DOTFILE, DOTFILE_ENV_VAR
from ...core.exceptions import ConfigError

DOTFILE_MODE = 0o600


@dataclass
class LoginState:
    """Contents of the login dotfile"""
    username: str = ""
    cookie: str = ""
    endpoint: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoginState":
        """Create from dictionary"""
        valid_fields = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**valid_fields)


def parse_cookie(header: str) -> Optional[Tuple[str, str]]:
    """
    Extract the name/value pair from a Set-Cookie header value.

    Attributes after the first ';' are ignored.
    """
    pair = header.split(";", 1)[0]
    if "=" not in pair:
        return None
    key, value = pair.split("=", 1)
    return key.strip(), value.strip()


def parse_cookies(headers: Iterable[str]) -> Optional[Tuple[str, str]]:
    """First usable cookie among several Set-Cookie headers"""
    for header in headers:
        pair = parse_cookie(header)
        if pair:
            return pair
    return None


def default_dotfile() -> Path:
    """Dotfile path from GSC_LOGIN, falling back to ~/.gsclogin"""
    return Path(os.environ.get(DOTFILE_ENV_VAR) or DEFAULT_DOTFILE).expanduser()


class LoginStore:
    """
    JSON login dotfile holding the username and session cookie.

    The file is written with mode 0600.
    """

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize login store.

        Args:
            path: Dotfile location (default: $GSC_LOGIN or ~/.gsclogin)
        """
        self.path = Path(path).expanduser() if path else default_dotfile()
        self._lock = threading.RLock()

    def load(self) -> LoginState:
        """Load login state; a missing dotfile is an empty state"""
        if not self.path.exists():
            return LoginState()

        try:
            return LoginState.from_dict(json.loads(self.path.read_text(encoding='utf-8')))
        except (ValueError, OSError) as e:
            raise ConfigError(f"Failed to read login file {self.path}: {e}") from e

    def save(self, state: LoginState) -> None:
        """Write login state"""
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(state.to_dict(), indent=2), encoding='utf-8')
            self.path.chmod(DOTFILE_MODE)

    def update(self, **changes: str) -> LoginState:
        """Load, change some fields and save"""
        with self._lock:
            state = self.load()
            for key, value in changes.items():
                setattr(state, key, value)
            self.save(state)
        return state

    def clear_cookie(self) -> None:
        """Forget the session cookie, keeping the username"""
        if self.path.exists():
            self.update(cookie="")
