from datetime import date

import pytest
from pydantic import ValidationError

from backend.schemas.student import StudentCreate, StudentUpdate
from backend.schemas.user import LoginRequest


def test_student_create_accepts_camel_case_and_normalizes() -> None:
    student = StudentCreate.model_validate(
        {
            'firstName': '  Ada ',
            'lastName': 'Lovelace',
            'email': ' ADA@University.edu ',
            'course': 'Computer Science',
            'enrollmentDate': '2024-09-01',
            'phone': '   ',
            'studentId': '',
        }
    )

    assert student.first_name == 'Ada'
    assert student.email == 'ada@university.edu'
    assert student.status == 'active'
    assert student.phone is None
    assert student.student_id is None
    assert student.enrollment_date == date(2024, 9, 1)


def test_student_create_accepts_iso_timestamp_for_enrollment_date() -> None:
    student = StudentCreate(
        first_name='Ada',
        last_name='Lovelace',
        email='ada@university.edu',
        course='Computer Science',
        enrollment_date='2024-09-01T00:00:00.000Z',
    )

    assert student.enrollment_date == date(2024, 9, 1)


@pytest.mark.parametrize(
    'overrides',
    [
        {'email': 'not-an-email'},
        {'status': 'expelled'},
        {'firstName': '   '},
        {'enrollmentDate': 'yesterday'},
        {'notes': 'x' * 2001},
    ],
)
def test_student_create_rejects_invalid_fields(overrides: dict) -> None:
    payload = {
        'firstName': 'Ada',
        'lastName': 'Lovelace',
        'email': 'ada@university.edu',
        'course': 'Computer Science',
        'enrollmentDate': '2024-09-01',
    }
    payload.update(overrides)

    with pytest.raises(ValidationError):
        StudentCreate.model_validate(payload)


def test_student_create_requires_core_fields() -> None:
    with pytest.raises(ValidationError) as exception_info:
        StudentCreate.model_validate({'firstName': 'Ada'})

    missing = {error['loc'][0] for error in exception_info.value.errors()}
    assert {'lastName', 'email', 'course', 'enrollmentDate'} <= missing


def test_student_update_tracks_only_sent_fields() -> None:
    update = StudentUpdate.model_validate({'status': 'graduated'})

    assert update.changes() == {'status': 'graduated'}


def test_student_update_keeps_empty_student_id() -> None:
    assert StudentUpdate.model_validate({'studentId': ' '}).changes() == {'student_id': ''}


def test_student_update_rejects_null_required_field() -> None:
    with pytest.raises(ValidationError):
        StudentUpdate.model_validate({'firstName': None})


def test_login_request_requires_password() -> None:
    with pytest.raises(ValidationError):
        LoginRequest.model_validate({'email': 'admin@university.edu', 'password': ''})
