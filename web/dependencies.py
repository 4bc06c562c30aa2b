"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
저장소와 JWT 비밀키는 앱 생명주기(lifespan)에서 app.state 에 설정된다.
"""

import time
from datetime import timezone

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from adapters.interfaces import IDocumentStore
from core.constants import Defaults
from core.session import Session
from core.utils.timezone import BRT

_bearer = HTTPBearer(auto_error=False)

# 토큰 기본 유효 시간 (초)
TOKEN_TTL_SECONDS = 12 * 60 * 60


def get_store(request: Request) -> IDocumentStore:
    """관리자 범위 문서 저장소 (서비스가 세션 소유자로 좁힌다)"""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, "저장소가 초기화되지 않았습니다")
    return store


def create_access_token(user_id: str, secret_key: str, ttl_seconds: int = TOKEN_TTL_SECONDS) -> str:
    """사용자 토큰 발급 (HS256, sub = user_id)"""
    now = int(time.time())
    payload = {"sub": user_id, "iat": now, "exp": now + ttl_seconds}
    return jwt.encode(payload, secret_key, algorithm=Defaults.JWT_ALGORITHM)


def get_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Session:
    """Bearer 토큰 → Session

    sub 클레임(없으면 uid)을 사용자 키로 사용한다.
    """
    if credentials is None:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            "인증 토큰이 필요합니다",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = jwt.decode(
            credentials.credentials,
            request.app.state.secret_key,
            algorithms=[Defaults.JWT_ALGORITHM],
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            f"유효하지 않은 토큰: {e}",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user_id = payload.get("sub") or payload.get("uid")
    if not user_id:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "토큰에 사용자 정보가 없습니다")
    return Session(user_id=str(user_id))


def get_tz(request: Request) -> timezone:
    """달력 판단 타임존 (설정의 timezone_offset_hours)"""
    return getattr(request.app.state, "tz", None) or BRT
