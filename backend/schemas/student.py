"""Pydantic schemas for students."""

from datetime import date, datetime
from typing import Literal

from pydantic import EmailStr, field_validator, model_validator

from backend.schemas.base import CamelModel

StudentStatus = Literal["active", "pending", "suspended", "graduated", "transferred"]
DEFAULT_STUDENT_STATUS: StudentStatus = "active"

REQUIRED_FIELDS = ("first_name", "last_name", "email", "course", "status", "enrollment_date")
MAX_NOTES_LENGTH = 2000


def _normalize_required_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    if not normalized:
        raise ValueError("Field cannot be blank.")
    return normalized


def _normalize_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


def _coerce_date(value):
    # The dashboard posts either "YYYY-MM-DD" or a full ISO timestamp.
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    if isinstance(value, datetime):
        return value.date()
    return value


class StudentFields(CamelModel):
    @field_validator("first_name", "last_name", "course", check_fields=False)
    @classmethod
    def validate_required_text(cls, value: str | None) -> str | None:
        return _normalize_required_text(value)

    @field_validator("email", check_fields=False)
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower()

    @field_validator("phone", "address", check_fields=False)
    @classmethod
    def validate_optional_text(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value)

    @field_validator("notes", check_fields=False)
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        normalized = _normalize_optional_text(value)
        if normalized is not None and len(normalized) > MAX_NOTES_LENGTH:
            raise ValueError(f"Notes must be {MAX_NOTES_LENGTH} characters or fewer.")
        return normalized

    @field_validator("enrollment_date", mode="before", check_fields=False)
    @classmethod
    def coerce_enrollment_date(cls, value):
        return _coerce_date(value)


class StudentCreate(StudentFields):
    first_name: str
    last_name: str
    email: EmailStr
    course: str
    status: StudentStatus = DEFAULT_STUDENT_STATUS
    student_id: str | None = None
    enrollment_date: date
    phone: str | None = None
    address: str | None = None
    notes: str | None = None

    @field_validator("student_id")
    @classmethod
    def validate_student_id(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value)


class StudentUpdate(StudentFields):
    """Partial update. Only fields the caller actually sent are applied."""

    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    course: str | None = None
    status: StudentStatus | None = None
    # An explicit empty string asks the repository for a fresh id.
    student_id: str | None = None
    enrollment_date: date | None = None
    phone: str | None = None
    address: str | None = None
    notes: str | None = None

    @field_validator("student_id")
    @classmethod
    def strip_student_id(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip()

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        for field_name in REQUIRED_FIELDS:
            if field_name in self.model_fields_set and getattr(self, field_name) is None:
                raise ValueError(f"{field_name} cannot be null.")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class Student(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str
    course: str
    status: StudentStatus
    student_id: str | None = None
    enrollment_date: date
    phone: str | None = None
    address: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class StudentResponse(CamelModel):
    message: str
    student: Student


class MessageResponse(CamelModel):
    message: str
