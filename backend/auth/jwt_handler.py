from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config
from backend.core.errors import InvalidToken


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    role: str
    expires_at: datetime


def create_access_token(user_id: int, email: str, role: str, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    now = datetime.now(timezone.utc)
    payload = {
        "userId": user_id,
        "email": email,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=expire_minutes),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET_KEY,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as exc:
        raise InvalidToken() from exc

    user_id = payload.get("userId")
    email = payload.get("email")
    if not isinstance(user_id, int) or not email:
        raise InvalidToken("Invalid token subject")

    return TokenClaims(
        user_id=user_id,
        email=email,
        role=payload.get("role", ""),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )
