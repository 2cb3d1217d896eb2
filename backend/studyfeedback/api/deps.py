from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from studyfeedback.core.errors import AuthenticationRequired
from studyfeedback.core.security import decode_access_token
from studyfeedback.crud import users as users_crud
from studyfeedback.models.user import UserInDB

# auto_error=False: 토큰 누락도 AuthenticationRequired 로 일관되게 처리
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """
    JWT 토큰을 검증하고 user_id (sub)를 반환합니다.
    """
    if not credentials or not credentials.credentials:
        raise AuthenticationRequired("No token provided")

    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise AuthenticationRequired("Invalid or expired token")
    return user_id


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """
    공개 엔드포인트용: 토큰이 없거나 잘못되면 익명(None)으로 취급.
    """
    if not credentials:
        return None
    return decode_access_token(credentials.credentials)


async def get_current_user(user_id: str = Depends(get_current_user_id)) -> UserInDB:
    user = await users_crud.get_user_by_id(user_id)
    if user is None:
        raise AuthenticationRequired("User not found")
    return user
