"""
services/token_blacklist.py

세션 토큰 블랙리스트(Token Revocation List) 서비스.

로그아웃 또는 관리자에 의한 로그인 일시정지 시
현재 사용 중인 토큰을 블랙리스트에 등록하여
서명/만료가 유효하더라도 즉시 거부되도록 한다.

설계 원칙:
- 등록은 멱등(idempotent): 이미 등록된 토큰은 에러가 아님
- 블랙리스트 보관 기한 = 토큰 자체의 exp
- 만료가 지난 레코드는 조회 결과에 영향이 없고, 정리 작업(purge)에서 삭제

"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.models.token_blacklist import BlacklistedToken


logger = logging.getLogger(__name__)


def is_token_blacklisted(db: Session, token: str) -> bool:
    return db.scalar(select(BlacklistedToken.id).where(BlacklistedToken.token == token)) is not None


"""
토큰 블랙리스트 등록

- 이미 등록된 토큰이면 아무것도 하지 않음
- 동시 요청으로 unique 충돌이 나도 이미 등록된 것으로 간주
- 독립된 작업이므로 여기서 바로 commit

"""

def blacklist_token(db: Session, *, token: str, user_id: uuid.UUID, expires_at: datetime) -> None:
    if is_token_blacklisted(db, token):
        return

    db.add(BlacklistedToken(token=token, user_id=user_id, expires_at=expires_at))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Token for user %s was already blacklisted", user_id)


def purge_expired_tokens(db: Session, now: datetime | None = None) -> int:
    now = now or utcnow()
    result = db.execute(delete(BlacklistedToken).where(BlacklistedToken.expires_at <= now))
    return result.rowcount or 0
