from datetime import timedelta

from sqlalchemy import select

from app.core.clock import utcnow
from app.core.security import get_password_hash
from app.models.token_blacklist import BlacklistedToken
from app.models.user import Role, ApprovalStatus
from app.models.verification import PendingUser, PasswordResetCode
from app.services.purge import purge_expired
from tests.helpers import create_user_in_db, unique_email


def _pending(email, expires_at):
    return PendingUser(
        email=email,
        password_hash=get_password_hash("Passw0rd!"),
        role=Role.MENTEE,
        first_name="P",
        last_name="U",
        verification_code="123456",
        verification_code_expires_at=expires_at,
        mentor_approval_status=ApprovalStatus.NOT_APPLICABLE,
        expires_at=expires_at,
    )


def test_purge_expired_removes_only_stale_rows(db_session):
    now = utcnow()
    user = create_user_in_db(db_session, email=unique_email("mentee"))

    db_session.add_all(
        [
            _pending("old@test.com", now - timedelta(minutes=1)),
            _pending("fresh@test.com", now + timedelta(hours=23)),
            PasswordResetCode(email="old@test.com", code="1234", expires_at=now - timedelta(hours=2)),
            PasswordResetCode(email="recent@test.com", code="1234", expires_at=now - timedelta(minutes=10)),
            BlacklistedToken(token="expired-token", user_id=user.id, expires_at=now - timedelta(seconds=1)),
            BlacklistedToken(token="live-token", user_id=user.id, expires_at=now + timedelta(days=1)),
        ]
    )
    db_session.commit()

    counts = purge_expired(db_session, now=now)
    assert counts == {"pending_users": 1, "password_reset_codes": 1, "blacklisted_tokens": 1}

    assert [p.email for p in db_session.scalars(select(PendingUser)).all()] == ["fresh@test.com"]
    assert [c.email for c in db_session.scalars(select(PasswordResetCode)).all()] == ["recent@test.com"]
    assert [t.token for t in db_session.scalars(select(BlacklistedToken)).all()] == ["live-token"]

    assert purge_expired(db_session, now=now) == {
        "pending_users": 0,
        "password_reset_codes": 0,
        "blacklisted_tokens": 0,
    }
