import threading

from backend.core.errors import Conflict, StorageUnavailable
from backend.repositories.base import Repository
from backend.schemas.student import Student
from backend.schemas.user import User


class InMemoryRepository(Repository):
    """Process-local repository used for tests and ``DATABASE_URL=memory://``.

    A single re-entrant lock makes each primitive atomic, which is all the
    sequence generator and the uniqueness checks need.
    """

    def __init__(self, seed_admin: bool | None = None, available: bool = True):
        super().__init__(seed_admin=seed_admin)
        self.available = available
        self._lock = threading.RLock()
        self._counters: dict[str, int] = {}
        self._users: dict[int, tuple[User, str]] = {}
        self._students: dict[int, Student] = {}

    def _check_available(self) -> None:
        if not self.available:
            raise StorageUnavailable("In-memory store marked unavailable")

    def _open(self) -> None:
        self._check_available()

    def _close(self) -> None:
        return None

    def _ensure_counter(self, name: str) -> None:
        with self._lock:
            self._counters.setdefault(name, 0)

    def _next_sequence(self, name: str) -> int:
        self._check_available()
        with self._lock:
            value = self._counters.get(name, 0) + 1
            self._counters[name] = value
            return value

    # Users

    def _find_user(self, user_id: int) -> User | None:
        self._check_available()
        with self._lock:
            found = self._users.get(user_id)
            return found[0] if found else None

    def _find_credentials(self, email: str) -> tuple[User, str] | None:
        self._check_available()
        with self._lock:
            for user, hashed_password in self._users.values():
                if user.email == email:
                    return user, hashed_password
        return None

    def _insert_user(self, user_id: int, values: dict) -> User:
        self._check_available()
        with self._lock:
            if any(user.email == values["email"] for user, _ in self._users.values()):
                raise Conflict("User with this email already exists", field="email")
            user = User(id=user_id, email=values["email"], name=values["name"], role=values["role"])
            self._users[user_id] = (user, values["hashed_password"])
            return user

    # Students

    def _all_students(self) -> list[Student]:
        self._check_available()
        with self._lock:
            return list(self._students.values())

    def _find_student(self, student_id: int) -> Student | None:
        self._check_available()
        with self._lock:
            return self._students.get(student_id)

    def _find_student_by_email(self, email: str) -> Student | None:
        self._check_available()
        with self._lock:
            for student in self._students.values():
                if student.email == email:
                    return student
        return None

    def _insert_student(self, student_id: int, values: dict) -> Student:
        self._check_available()
        with self._lock:
            self._check_student_unique(values.get("email"), values.get("student_id"))
            student = Student(id=student_id, **values)
            self._students[student_id] = student
            return student

    def _apply_student_update(self, student_id: int, changes: dict) -> Student | None:
        self._check_available()
        with self._lock:
            current = self._students.get(student_id)
            if current is None:
                return None
            self._check_student_unique(changes.get("email"), changes.get("student_id"), exclude_id=student_id)
            updated = current.model_copy(
                update={**changes, "updated_at": self.next_timestamp(current.updated_at)}
            )
            self._students[student_id] = updated
            return updated

    def _remove_student(self, student_id: int) -> bool:
        self._check_available()
        with self._lock:
            return self._students.pop(student_id, None) is not None

    def _check_student_unique(self, email: str | None, student_code: str | None, exclude_id: int | None = None) -> None:
        for student in self._students.values():
            if student.id == exclude_id:
                continue
            if email and student.email == email:
                raise Conflict("Student with this email already exists", field="email")
            if student_code and student.student_id == student_code:
                raise Conflict("Student with this student ID already exists", field="student_id")
