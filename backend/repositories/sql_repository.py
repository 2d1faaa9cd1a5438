import logging
from contextlib import contextmanager

from sqlalchemy import Engine, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.errors import Conflict, StorageUnavailable
from backend.database import Base, build_engine, build_session_factory
from backend.models.counter import Counter
from backend.models.student import Student as StudentRow
from backend.models.user import User as UserRow
from backend.repositories.base import Repository, as_utc
from backend.repositories.sequence import SqlSequence
from backend.schemas.student import Student
from backend.schemas.user import User

logger = logging.getLogger(__name__)

TABLES = [UserRow.__table__, StudentRow.__table__, Counter.__table__]

STUDENT_EMAIL_CONFLICT = "Student with this email already exists"
STUDENT_ID_CONFLICT = "Student with this student ID already exists"
USER_EMAIL_CONFLICT = "User with this email already exists"


def _row_values(row) -> dict:
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}


def _to_user(row: UserRow) -> User:
    values = _row_values(row)
    values.pop("hashed_password")
    return User.model_validate(values)


def _to_student(row: StudentRow) -> Student:
    student = Student.model_validate(_row_values(row))
    return student.model_copy(
        update={
            "created_at": as_utc(student.created_at),
            "updated_at": as_utc(student.updated_at),
        }
    )


class SqlRepository(Repository):
    """Repository backed by any SQLAlchemy database (Postgres, SQLite, ...)."""

    def __init__(self, database_url: str | None = None, engine: Engine | None = None, seed_admin: bool | None = None):
        super().__init__(seed_admin=seed_admin)
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required")
            engine = build_engine(database_url)
        self.engine = engine
        self._session_factory = build_session_factory(engine)
        self._sequence = SqlSequence(self._session_factory)

    @contextmanager
    def _session(self):
        try:
            with self._session_factory() as session:
                yield session
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            raise StorageUnavailable() from exc

    def _open(self) -> None:
        logger.info("Connecting to %s", self.engine.url.render_as_string(hide_password=True))
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            Base.metadata.create_all(bind=self.engine, tables=TABLES)
        except SQLAlchemyError as exc:
            raise StorageUnavailable("Database initialization failed. Check DATABASE_URL.") from exc

    def _close(self) -> None:
        self.engine.dispose()

    def _ensure_counter(self, name: str) -> None:
        self._sequence.ensure(name)

    def _next_sequence(self, name: str) -> int:
        return self._sequence.next(name)

    # Users

    def _find_user(self, user_id: int) -> User | None:
        with self._session() as session:
            row = session.get(UserRow, user_id)
            return _to_user(row) if row else None

    def _find_credentials(self, email: str) -> tuple[User, str] | None:
        with self._session() as session:
            row = session.scalars(select(UserRow).where(UserRow.email == email)).first()
            return (_to_user(row), row.hashed_password) if row else None

    def _insert_user(self, user_id: int, values: dict) -> User:
        with self._session() as session:
            if session.scalars(select(UserRow.id).where(UserRow.email == values["email"])).first() is not None:
                raise Conflict(USER_EMAIL_CONFLICT, field="email")
            row = UserRow(id=user_id, **values)
            session.add(row)
            self._commit(session, USER_EMAIL_CONFLICT, field="email")
            return _to_user(row)

    # Students

    def _all_students(self) -> list[Student]:
        with self._session() as session:
            rows = session.scalars(
                select(StudentRow).order_by(StudentRow.created_at.desc(), StudentRow.id.desc())
            ).all()
            return [_to_student(row) for row in rows]

    def _find_student(self, student_id: int) -> Student | None:
        with self._session() as session:
            row = session.get(StudentRow, student_id)
            return _to_student(row) if row else None

    def _find_student_by_email(self, email: str) -> Student | None:
        with self._session() as session:
            row = session.scalars(select(StudentRow).where(StudentRow.email == email)).first()
            return _to_student(row) if row else None

    def _insert_student(self, student_id: int, values: dict) -> Student:
        with self._session() as session:
            self._check_student_unique(session, values.get("email"), values.get("student_id"))
            row = StudentRow(id=student_id, **values)
            session.add(row)
            self._commit_student(session, values.get("email"), values.get("student_id"))
            return _to_student(row)

    def _apply_student_update(self, student_id: int, changes: dict) -> Student | None:
        with self._session() as session:
            row = session.get(StudentRow, student_id)
            if row is None:
                return None
            self._check_student_unique(
                session, changes.get("email"), changes.get("student_id"), exclude_id=student_id
            )
            for field_name, value in changes.items():
                setattr(row, field_name, value)
            row.updated_at = self.next_timestamp(row.updated_at)
            self._commit_student(session, changes.get("email"), changes.get("student_id"), exclude_id=student_id)
            return _to_student(row)

    def _remove_student(self, student_id: int) -> bool:
        with self._session() as session:
            row = session.get(StudentRow, student_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True

    @staticmethod
    def _check_student_unique(session: Session, email: str | None, student_code: str | None, exclude_id: int | None = None) -> None:
        checks = (
            ("email", StudentRow.email, email, STUDENT_EMAIL_CONFLICT),
            ("student_id", StudentRow.student_id, student_code, STUDENT_ID_CONFLICT),
        )
        for field_name, column, value, message in checks:
            if not value:
                continue
            statement = select(StudentRow.id).where(column == value)
            if exclude_id is not None:
                statement = statement.where(StudentRow.id != exclude_id)
            if session.scalars(statement).first() is not None:
                raise Conflict(message, field=field_name)

    @staticmethod
    def _commit(session: Session, message: str, field: str | None = None) -> None:
        # The pre-checks race with concurrent writers; the unique indexes do not.
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise Conflict(message, field=field) from exc

    def _commit_student(self, session: Session, email: str | None, student_code: str | None, exclude_id: int | None = None) -> None:
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            # Name the column that lost the race so generated ids get retried.
            self._check_student_unique(session, email, student_code, exclude_id=exclude_id)
            raise Conflict(STUDENT_EMAIL_CONFLICT, field="email") from exc
