import logging

from fastapi import APIRouter, Depends, HTTPException, status

from backend.auth.dependencies import get_current_claims, get_repository
from backend.auth.jwt_handler import TokenClaims
from backend.repositories.base import Repository
from backend.schemas.user import LoginRequest, LoginResponse, VerifyResponse

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


@router.post('/login', response_model=LoginResponse)
def login(payload: LoginRequest, repository: Repository = Depends(get_repository)):
    result = repository.authenticate(payload.email, payload.password)
    if result is None:
        logger.info('Failed login for %s', payload.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid email or password')

    return LoginResponse(message='Login successful', user=result.user, token=result.token)


@router.post('/verify', response_model=VerifyResponse)
def verify(
    claims: TokenClaims = Depends(get_current_claims),
    repository: Repository = Depends(get_repository),
):
    user = repository.get_user(claims.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

    return VerifyResponse(user=user)
