import re

from fastapi import APIRouter, Depends, HTTPException, status

from backend.auth.dependencies import get_current_claims, get_repository
from backend.core.errors import Conflict
from backend.repositories.base import Repository
from backend.schemas.student import (
    MessageResponse,
    Student,
    StudentCreate,
    StudentResponse,
    StudentUpdate,
)

router = APIRouter(tags=['students'], dependencies=[Depends(get_current_claims)])

EMAIL_CONFLICT_DETAIL = 'Student with this email already exists'

STUDENT_ID_PATTERN = re.compile(r'-?[0-9]+')
# Ids are stored as signed 64-bit integers.
MAX_STUDENT_ID = 2**63 - 1


def parse_student_id(raw_id: str) -> int:
    if not STUDENT_ID_PATTERN.fullmatch(raw_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid student ID')
    value = int(raw_id)
    if not -MAX_STUDENT_ID - 1 <= value <= MAX_STUDENT_ID:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Student not found')
    return value


@router.get('', response_model=list[Student])
def list_students(repository: Repository = Depends(get_repository)):
    return repository.list_students()


@router.get('/{student_id}', response_model=Student)
def get_student(student_id: str, repository: Repository = Depends(get_repository)):
    student = repository.get_student(parse_student_id(student_id))
    if student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Student not found')
    return student


@router.post('', response_model=StudentResponse, status_code=status.HTTP_201_CREATED)
def create_student(payload: StudentCreate, repository: Repository = Depends(get_repository)):
    if repository.get_student_by_email(payload.email) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_CONFLICT_DETAIL)

    try:
        student = repository.create_student(payload)
    except Conflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message) from exc

    return StudentResponse(message='Student created successfully', student=student)


@router.put('/{student_id}', response_model=StudentResponse)
def update_student(student_id: str, payload: StudentUpdate, repository: Repository = Depends(get_repository)):
    record_id = parse_student_id(student_id)

    if payload.email:
        existing = repository.get_student_by_email(payload.email)
        if existing is not None and existing.id != record_id:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=EMAIL_CONFLICT_DETAIL)

    try:
        student = repository.update_student(record_id, payload)
    except Conflict as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message) from exc

    if student is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Student not found')

    return StudentResponse(message='Student updated successfully', student=student)


@router.delete('/{student_id}', response_model=MessageResponse)
def delete_student(student_id: str, repository: Repository = Depends(get_repository)):
    if not repository.delete_student(parse_student_id(student_id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Student not found')

    return MessageResponse(message='Student deleted successfully')
