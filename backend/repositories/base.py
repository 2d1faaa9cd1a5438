"""Storage-agnostic repository for users and students.

``Repository`` owns the rules every backend must follow: id and
student-id generation, timestamps, password hashing and stripping, and the
policy of degrading to empty results when storage is unreachable. Concrete
backends only implement the ``_``-prefixed primitives.
"""

import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TypeVar

from backend.auth import jwt_handler
from backend.auth.passwords import hash_password, verify_password
from backend.core import config
from backend.core.errors import Conflict, StorageUnavailable
from backend.schemas.student import DEFAULT_STUDENT_STATUS, Student, StudentCreate, StudentUpdate
from backend.schemas.user import AuthResult, User, UserCreate

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_COUNTER = "userId"
STUDENT_COUNTER = "studentId"
COUNTER_NAMES = (USER_COUNTER, STUDENT_COUNTER)

STUDENT_ID_ATTEMPTS = 5


def generate_student_id(year: int | None = None, rng: random.Random | None = None) -> str:
    year = year or datetime.now(timezone.utc).year
    number = (rng or random).randrange(10000)
    return f"STU{year}{number:04d}"


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Repository(ABC):
    def __init__(self, seed_admin: bool | None = None):
        self.seed_admin = config.SEED_ADMIN_ENABLED if seed_admin is None else seed_admin
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    def connect(self) -> bool:
        """Open storage, seed counters and the admin account.

        Failure is logged, not raised: the repository stays usable and every
        operation degrades to its fallback result.
        """
        try:
            self._open()
            for name in COUNTER_NAMES:
                self._ensure_counter(name)
            self._connected = True
            if self.seed_admin:
                self._seed_default_admin()
        except StorageUnavailable:
            logger.exception("Storage connection failed; operations will return empty results.")
            self._connected = False
        return self._connected

    def close(self) -> None:
        self._connected = False
        self._close()

    def next_id(self, counter_name: str) -> int:
        self._require_connection()
        return self._next_sequence(counter_name)

    # Users

    def get_user(self, user_id: int) -> User | None:
        return self._read("get user", None, lambda: self._find_user(user_id))

    def get_user_by_email(self, email: str) -> User | None:
        found = self._read("get user by email", None, lambda: self._find_credentials(email.strip().lower()))
        return found[0] if found else None

    def create_user(self, data: UserCreate) -> User:
        self._require_connection()
        values = {
            "email": data.email,
            "hashed_password": hash_password(data.password),
            "name": data.name,
            "role": data.role or "admin",
            "created_at": utc_now(),
        }
        return self._insert_user(self._next_sequence(USER_COUNTER), values)

    def authenticate(self, email: str, password: str) -> AuthResult | None:
        found = self._read("authenticate", None, lambda: self._find_credentials(email.strip().lower()))
        if found is None:
            return None
        user, hashed_password = found
        if not verify_password(password, hashed_password):
            return None
        token = jwt_handler.create_access_token(user.id, user.email, user.role)
        return AuthResult(user=user, token=token)

    # Students

    def list_students(self) -> list[Student]:
        students = self._read("list students", [], self._all_students)
        return sorted(students, key=lambda student: (student.created_at, student.id), reverse=True)

    def get_student(self, student_id: int) -> Student | None:
        return self._read("get student", None, lambda: self._find_student(student_id))

    def get_student_by_email(self, email: str) -> Student | None:
        return self._read("get student by email", None, lambda: self._find_student_by_email(email.strip().lower()))

    def create_student(self, data: StudentCreate) -> Student:
        self._require_connection()
        values = data.model_dump()
        values["status"] = values.get("status") or DEFAULT_STUDENT_STATUS
        generated = not values.get("student_id")
        now = utc_now()
        values["created_at"] = now
        values["updated_at"] = now

        record_id = self._next_sequence(STUDENT_COUNTER)
        attempts_left = STUDENT_ID_ATTEMPTS if generated else 1
        while True:
            if generated:
                values["student_id"] = generate_student_id()
            try:
                return self._insert_student(record_id, values)
            except Conflict as exc:
                attempts_left -= 1
                if not generated or exc.field != "student_id" or attempts_left == 0:
                    raise
                logger.info("Generated student id %s collided; retrying.", values["student_id"])

    def update_student(self, student_id: int, data: StudentUpdate) -> Student | None:
        changes = data.changes()
        if "student_id" in changes and not changes["student_id"]:
            changes["student_id"] = generate_student_id()
        return self._read("update student", None, lambda: self._apply_student_update(student_id, changes))

    def delete_student(self, student_id: int) -> bool:
        return self._read("delete student", False, lambda: self._remove_student(student_id))

    # Helpers shared by backends

    @staticmethod
    def next_timestamp(previous: datetime | None) -> datetime:
        """A fresh ``updated_at`` that is strictly later than ``previous``."""
        now = utc_now()
        if previous is not None:
            previous = as_utc(previous)
            if now <= previous:
                return previous + timedelta(microseconds=1)
        return now

    def _require_connection(self) -> None:
        if not self._connected:
            raise StorageUnavailable("Database not connected")

    def _read(self, operation: str, fallback: T, action: Callable[[], T]) -> T:
        try:
            self._require_connection()
            return action()
        except StorageUnavailable:
            logger.exception("Storage unavailable during %s", operation)
            return fallback

    def _seed_default_admin(self) -> None:
        if self._find_credentials(config.SEED_ADMIN_EMAIL.lower()) is not None:
            logger.info("Admin user already exists")
            return
        logger.info("Creating default admin user %s", config.SEED_ADMIN_EMAIL)
        try:
            self.create_user(
                UserCreate(
                    email=config.SEED_ADMIN_EMAIL,
                    password=config.SEED_ADMIN_PASSWORD,
                    name=config.SEED_ADMIN_NAME,
                    role="admin",
                )
            )
        except Conflict:
            # Another process seeded it first.
            logger.info("Admin user already exists")

    # Backend primitives

    @abstractmethod
    def _open(self) -> None: ...

    @abstractmethod
    def _close(self) -> None: ...

    @abstractmethod
    def _ensure_counter(self, name: str) -> None: ...

    @abstractmethod
    def _next_sequence(self, name: str) -> int: ...

    @abstractmethod
    def _find_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    def _find_credentials(self, email: str) -> tuple[User, str] | None: ...

    @abstractmethod
    def _insert_user(self, user_id: int, values: dict) -> User: ...

    @abstractmethod
    def _all_students(self) -> list[Student]: ...

    @abstractmethod
    def _find_student(self, student_id: int) -> Student | None: ...

    @abstractmethod
    def _find_student_by_email(self, email: str) -> Student | None: ...

    @abstractmethod
    def _insert_student(self, student_id: int, values: dict) -> Student: ...

    @abstractmethod
    def _apply_student_update(self, student_id: int, changes: dict) -> Student | None:
        """Apply ``changes`` and refresh ``updated_at`` via ``next_timestamp``."""

    @abstractmethod
    def _remove_student(self, student_id: int) -> bool: ...
