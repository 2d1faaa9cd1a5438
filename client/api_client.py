"""HTTP client for the student management API.

Mirrors what the dashboard does: reads are cached, every mutation
invalidates the cached student list and stats, and an auth failure drops
the stored login.
"""

import logging
import os
import threading
from contextlib import contextmanager
from typing import Any

import httpx

from client.auth_store import AuthStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

STUDENTS_KEY = "students"
STATS_KEY = "stats"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, errors: list | None = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class RequestPending(Exception):
    """The same mutation is already in flight."""


class DashboardClient:
    def __init__(
        self,
        base_url: str | None = None,
        auth_store: AuthStore | None = None,
        http_client: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        self._http = http_client or httpx.Client(base_url=base_url or DEFAULT_BASE_URL, timeout=timeout)
        self.auth_store = auth_store or AuthStore()
        self._cache: dict[str, Any] = {}
        self._pending: set[str] = set()
        self._pending_lock = threading.Lock()

    @property
    def is_authenticated(self) -> bool:
        return self.auth_store.is_authenticated

    @property
    def user(self) -> dict | None:
        return self.auth_store.user

    def close(self) -> None:
        self._http.close()

    # Auth

    def login(self, email: str, password: str) -> dict:
        with self._in_flight("login"):
            data = self._request("POST", "/api/auth/login", json={"email": email, "password": password}, auth=False)
        self.auth_store.save(data["token"], data["user"])
        self._cache.clear()
        return data["user"]

    def logout(self) -> None:
        self.auth_store.clear()
        self._cache.clear()

    def verify(self) -> dict:
        data = self._request("POST", "/api/auth/verify")
        return data["user"]

    # Reads

    def list_students(self, refresh: bool = False) -> list[dict]:
        return self._cached(STUDENTS_KEY, lambda: self._request("GET", "/api/students"), refresh)

    def get_student(self, student_id: int, refresh: bool = False) -> dict:
        return self._cached(
            f"{STUDENTS_KEY}:{student_id}",
            lambda: self._request("GET", f"/api/students/{student_id}"),
            refresh,
        )

    def dashboard_stats(self, refresh: bool = False) -> dict:
        return self._cached(STATS_KEY, lambda: self._request("GET", "/api/dashboard/stats"), refresh)

    def filter_students(self, course: str | None = None, status: str | None = None) -> list[dict]:
        """Client-side filtering, as in the students table. ``None`` or "all" matches everything."""
        def matches(student: dict) -> bool:
            if course not in (None, "all") and student.get("course") != course:
                return False
            if status not in (None, "all") and student.get("status") != status:
                return False
            return True

        return [student for student in self.list_students() if matches(student)]

    # Mutations

    def create_student(self, student: dict) -> dict:
        with self._in_flight("create"):
            data = self._request("POST", "/api/students", json=student)
        self._invalidate()
        return data["student"]

    def update_student(self, student_id: int, changes: dict) -> dict:
        with self._in_flight(f"update:{student_id}"):
            data = self._request("PUT", f"/api/students/{student_id}", json=changes)
        self._invalidate()
        return data["student"]

    def delete_student(self, student_id: int) -> None:
        with self._in_flight(f"delete:{student_id}"):
            self._request("DELETE", f"/api/students/{student_id}")
        self._invalidate()

    # Internals

    def _cached(self, key: str, fetch, refresh: bool):
        if refresh or key not in self._cache:
            self._cache[key] = fetch()
        return self._cache[key]

    def _invalidate(self) -> None:
        for key in list(self._cache):
            if key == STATS_KEY or key == STUDENTS_KEY or key.startswith(f"{STUDENTS_KEY}:"):
                del self._cache[key]

    @contextmanager
    def _in_flight(self, key: str):
        with self._pending_lock:
            if key in self._pending:
                raise RequestPending(key)
            self._pending.add(key)
        try:
            yield
        finally:
            with self._pending_lock:
                self._pending.discard(key)

    def _request(self, method: str, path: str, json: dict | None = None, auth: bool = True) -> Any:
        headers = self.auth_store.auth_headers() if auth else {}
        response = self._http.request(method, path, json=json, headers=headers)

        if response.status_code in (401, 403) and auth:
            logger.info("Session rejected by server (%s); clearing stored login.", response.status_code)
            self.auth_store.clear()
            self._cache.clear()

        if response.is_error:
            try:
                body = response.json()
            except ValueError:
                body = {}
            message = body.get("message") if isinstance(body, dict) else None
            errors = body.get("errors") if isinstance(body, dict) else None
            raise ApiError(response.status_code, message or response.reason_phrase, errors)

        return response.json()
