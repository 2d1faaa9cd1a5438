from concurrent.futures import ThreadPoolExecutor
from datetime import date, timezone

import pytest
from sqlalchemy import select

from backend.core.errors import Conflict, StorageUnavailable
from backend.database import build_engine, build_session_factory
from backend.models.counter import Counter
from backend.repositories.sequence import SqlSequence
from backend.repositories.sql_repository import SqlRepository
from backend.schemas.student import StudentCreate, StudentUpdate


@pytest.fixture
def file_repository(tmp_path):
    repository = SqlRepository(database_url=f"sqlite:///{tmp_path / 'students.db'}", seed_admin=False)
    repository.connect()
    yield repository
    repository.close()


def test_connect_creates_counters(sql_repository) -> None:
    with build_session_factory(sql_repository.engine)() as session:
        names = set(session.scalars(select(Counter.name)).all())

    assert {'userId', 'studentId'} <= names


def test_seeded_admin_takes_first_user_id(sql_repository) -> None:
    assert sql_repository.get_user_by_email('admin@university.edu').id == 1


def test_timestamps_come_back_timezone_aware(sql_repository) -> None:
    created = sql_repository.create_student(
        StudentCreate(
            first_name='Alan',
            last_name='Turing',
            email='alan@university.edu',
            course='Computer Science',
            enrollment_date=date(2024, 9, 1),
        )
    )

    fetched = sql_repository.get_student(created.id)

    assert fetched.created_at.tzinfo == timezone.utc
    assert fetched.updated_at.tzinfo == timezone.utc


def build_student(email: str, student_id: str | None = None) -> StudentCreate:
    return StudentCreate(
        first_name='Grace',
        last_name='Hopper',
        email=email,
        course='Mathematics',
        student_id=student_id,
        enrollment_date=date(2024, 9, 1),
    )


def skip_first_uniqueness_check(monkeypatch: pytest.MonkeyPatch, repository: SqlRepository) -> None:
    """Let one write reach the unique index, as a concurrent writer would."""
    check = SqlRepository._check_student_unique
    calls = []

    def racing_check(*args, **kwargs):
        calls.append(args)
        if len(calls) > 1:
            check(*args, **kwargs)

    monkeypatch.setattr(repository, '_check_student_unique', racing_check)


def test_unique_index_violation_names_the_student_id(sql_repository, monkeypatch: pytest.MonkeyPatch) -> None:
    sql_repository.create_student(build_student('first@university.edu', 'STU20240001'))
    skip_first_uniqueness_check(monkeypatch, sql_repository)

    with pytest.raises(Conflict) as excinfo:
        sql_repository.create_student(build_student('second@university.edu', 'STU20240001'))

    assert excinfo.value.field == 'student_id'
    assert excinfo.value.message == 'Student with this student ID already exists'


def test_generated_id_lost_to_unique_index_is_retried(sql_repository, monkeypatch: pytest.MonkeyPatch) -> None:
    sql_repository.create_student(build_student('first@university.edu', 'STU20240001'))
    generated = iter(['STU20240001', 'STU20240002'])
    monkeypatch.setattr('backend.repositories.base.generate_student_id', lambda: next(generated))
    skip_first_uniqueness_check(monkeypatch, sql_repository)

    created = sql_repository.create_student(build_student('second@university.edu'))

    assert created.student_id == 'STU20240002'
    assert len(sql_repository.list_students()) == 2


def test_update_losing_unique_index_race_names_the_email(sql_repository, monkeypatch: pytest.MonkeyPatch) -> None:
    sql_repository.create_student(build_student('first@university.edu'))
    second = sql_repository.create_student(build_student('second@university.edu'))
    skip_first_uniqueness_check(monkeypatch, sql_repository)

    with pytest.raises(Conflict) as excinfo:
        sql_repository.update_student(second.id, StudentUpdate(email='first@university.edu'))

    assert excinfo.value.field == 'email'
    assert sql_repository.get_student(second.id).email == 'second@university.edu'


def test_data_survives_reconnect(tmp_path) -> None:
    url = f"sqlite:///{tmp_path / 'students.db'}"
    first = SqlRepository(database_url=url, seed_admin=True)
    first.connect()
    first.close()

    second = SqlRepository(database_url=url, seed_admin=True)
    second.connect()

    assert second.get_user_by_email('admin@university.edu').id == 1
    assert second.next_id('userId') == 2
    second.close()


def test_sequence_is_atomic_under_concurrency(file_repository) -> None:
    with ThreadPoolExecutor(max_workers=8) as executor:
        values = list(executor.map(lambda _: file_repository.next_id('studentId'), range(80)))

    assert sorted(values) == list(range(1, 81))


def test_sequence_initializes_missing_counter(tmp_path) -> None:
    engine = build_engine(f"sqlite:///{tmp_path / 'counters.db'}")
    Counter.__table__.create(bind=engine)
    sequence = SqlSequence(build_session_factory(engine))

    assert sequence.next('fresh') == 1
    assert sequence.next('fresh') == 2
    engine.dispose()


def test_sequence_reports_missing_table_as_unavailable() -> None:
    engine = build_engine('sqlite://')
    sequence = SqlSequence(build_session_factory(engine))

    with pytest.raises(StorageUnavailable):
        sequence.next('studentId')


def test_unreachable_database_leaves_repository_disconnected(tmp_path) -> None:
    repository = SqlRepository(database_url=f"sqlite:///{tmp_path / 'missing' / 'nested' / 'students.db'}")

    assert repository.connect() is False
    assert repository.list_students() == []
