"""
services/purge.py

만료 데이터 정리(purge) 작업.

조회 시에는 이미 expires_at 으로 만료 레코드를 걸러내므로,
이 작업은 정확성과 무관하게 테이블 크기만 관리한다.

- pending_users         : expires_at 이 지난 가입 대기 레코드
- password_reset_codes  : 만료 후 1시간이 지난 재설정 코드
- blacklisted_tokens    : 토큰 자체의 exp 가 지난 블랙리스트 레코드

app.main 의 lifespan 백그라운드 루프와
scripts/purge_expired.py 에서 호출한다.

"""

from datetime import datetime, timedelta

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.models.verification import PendingUser, PasswordResetCode
from app.services.token_blacklist import purge_expired_tokens


RESET_CODE_RETENTION = timedelta(hours=1)


def purge_expired(db: Session, now: datetime | None = None) -> dict[str, int]:
    now = now or utcnow()

    pending = db.execute(delete(PendingUser).where(PendingUser.expires_at <= now))
    codes = db.execute(
        delete(PasswordResetCode).where(PasswordResetCode.expires_at <= now - RESET_CODE_RETENTION)
    )
    tokens = purge_expired_tokens(db, now)

    db.commit()
    return {
        "pending_users": pending.rowcount or 0,
        "password_reset_codes": codes.rowcount or 0,
        "blacklisted_tokens": tokens,
    }
