"""Persisted login state for the dashboard client."""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_AUTH_FILE = Path(
    os.getenv("STUDENT_DASHBOARD_AUTH_FILE", str(Path.home() / ".student_dashboard" / "auth.json"))
)


class AuthStore:
    """Token and user kept on disk so a login survives restarts."""

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else DEFAULT_AUTH_FILE
        self.token: str | None = None
        self.user: dict | None = None
        self._load()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token and self.user)

    def save(self, token: str, user: dict) -> None:
        self.token = token
        self.user = user
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token, "user": user}), encoding="utf-8")
        try:
            self.path.chmod(0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.path)

    def clear(self) -> None:
        self.token = None
        self.user = None
        if self.path.exists():
            self.path.unlink()

    def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Ignoring unreadable auth file %s", self.path)
            return
        if isinstance(data, dict):
            self.token = data.get("token")
            self.user = data.get("user")
