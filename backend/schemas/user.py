"""Pydantic schemas for users and login."""

from dataclasses import dataclass

from pydantic import EmailStr, field_validator

from backend.schemas.base import CamelModel


class User(CamelModel):
    """Public user representation. Never carries the password digest."""

    id: int
    email: str
    name: str
    role: str


class UserCreate(CamelModel):
    email: EmailStr
    password: str
    name: str
    role: str = "admin"

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required.")
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required.")
        return value


class LoginResponse(CamelModel):
    message: str
    user: User
    token: str


class VerifyResponse(CamelModel):
    user: User


@dataclass(frozen=True)
class AuthResult:
    user: User
    token: str
