"""
deps.py

FastAPI 공통 의존성 모음.

- get_db               : 요청 단위 DB 세션
- get_email_client     : 프로세스당 1개의 이메일 클라이언트 (최초 사용 시 생성)
- get_current_user     : Bearer 토큰 인증 (블랙리스트 / 활성화 / 멘토 승인 / 일시정지 확인)
- get_current_mentor   : 멘토 전용
- get_current_admin    : 관리자 전용

"""

import logging
import uuid
from functools import lru_cache
from typing import Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AccountDeactivated, LoginPaused, PermissionDenied, TokenRevoked
from app.core.security import decode_access_token, token_expires_at
from app.db.session import SessionLocal
from app.models.user import User, Role
from app.services.approval import ensure_mentor_can_sign_in
from app.services.email import EmailClient
from app.services.identity import get_user
from app.services.token_blacklist import blacklist_token, is_token_blacklisted


logger = logging.getLogger(__name__)

# Swagger Authorize에서 "Bearer 토큰" 입력받는 스키마
bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache(maxsize=1)
def get_email_client() -> EmailClient:
    return EmailClient(settings)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_bearer_token(cred: HTTPAuthorizationCredentials | None = Depends(bearer_scheme)) -> str:
    if cred is None:
        raise _unauthorized("Not authenticated")
    return cred.credentials


"""
현재 사용자 인증 의존성

확인 순서:
1) 블랙리스트 토큰              -> TokenRevoked
2) 서명 / 만료 / 타입 검증      -> 401 Could not validate credentials
3) 사용자 존재 / 활성화          -> 401
4) 멘토: 승인 대기 / 거절        -> ApprovalPending / ApprovalRejected
5) 멘토: 로그인 일시정지         -> 현재 토큰을 블랙리스트에 올린 뒤 LoginPaused

"""

def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User:
    if is_token_blacklisted(db, token):
        raise TokenRevoked()

    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(payload["sub"])
    except Exception:
        raise _unauthorized("Could not validate credentials")

    user = get_user(db, user_id)
    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise AccountDeactivated()

    try:
        ensure_mentor_can_sign_in(user)
    except LoginPaused:
        # 일시정지 이후에는 같은 토큰으로 다시 들어올 수 없도록 즉시 무효화
        try:
            blacklist_token(db, token=token, user_id=user.id, expires_at=token_expires_at(payload))
        except Exception:
            db.rollback()
            logger.exception("Failed to blacklist token of paused mentor %s", user.id)
        raise

    return user


def require_role(*roles: Role):
    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise PermissionDenied(f"Requires role: {', '.join(r.value for r in roles)}")
        return current_user
    return _checker


get_current_mentor = require_role(Role.MENTOR)
get_current_admin = require_role(Role.ADMIN)
