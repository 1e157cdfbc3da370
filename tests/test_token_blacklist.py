from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.models.token_blacklist import BlacklistedToken
from app.services import token_blacklist
from app.services.token_blacklist import blacklist_token, is_token_blacklisted
from tests.helpers import create_user_in_db, unique_email


def _rows(db, token):
    return db.scalars(select(BlacklistedToken).where(BlacklistedToken.token == token)).all()


def test_blacklist_same_token_twice(db_session):
    user = create_user_in_db(db_session, email=unique_email("mentee"))
    expires_at = utcnow() + timedelta(days=1)

    blacklist_token(db_session, token="token-a", user_id=user.id, expires_at=expires_at)
    blacklist_token(db_session, token="token-a", user_id=user.id, expires_at=expires_at)

    assert is_token_blacklisted(db_session, "token-a") is True
    assert len(_rows(db_session, "token-a")) == 1


def test_blacklist_unique_conflict_is_treated_as_done(db_session, monkeypatch):
    user = create_user_in_db(db_session, email=unique_email("mentee"))
    user_id = user.id
    expires_at = utcnow() + timedelta(days=1)

    # 다른 세션(동시 요청)이 먼저 등록
    other = Session(bind=db_session.get_bind())
    try:
        other.add(BlacklistedToken(token="token-b", user_id=user_id, expires_at=expires_at))
        other.commit()
    finally:
        other.close()

    # 존재 확인 시점에는 아직 없었던 것처럼 만들어 unique 충돌 경로를 탐
    monkeypatch.setattr(token_blacklist, "is_token_blacklisted", lambda db, token: False)
    blacklist_token(db_session, token="token-b", user_id=user_id, expires_at=expires_at)
    monkeypatch.undo()

    assert len(_rows(db_session, "token-b")) == 1
    assert is_token_blacklisted(db_session, "token-b") is True
