from datetime import timedelta

from sqlalchemy import select

from app.core.clock import utcnow
from app.models.user import AuthProvider
from app.models.verification import PasswordResetCode
from app.services.identity import create_user
from tests.helpers import auth_header, create_user_in_db, login, unique_email


def _forgot(client, email):
    return client.post("/auth/password/forgot", json={"email": email})


def _wrong_code(code: str) -> str:
    return "0000" if code != "0000" else "1111"


def test_forgot_password_unknown_email_still_succeeds(client, db_session, outbox):
    email = unique_email("ghost")
    res = _forgot(client, email)
    assert res.status_code == 200
    assert res.json()["message"] == "If an account with that email exists, we have sent an OTP code."

    assert outbox.codes == []
    assert db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email)) is None


def test_forgot_password_google_account_is_rejected(client, db_session, outbox):
    email = unique_email("google")
    create_user(
        db_session,
        email=email,
        first_name="Google",
        last_name="User",
        role=None,
        auth_provider=AuthProvider.GOOGLE,
        google_id="google-123",
        is_verified=True,
    )
    db_session.commit()

    res = _forgot(client, email)
    assert res.status_code == 400
    assert res.json()["code"] == "EXTERNAL_AUTH_PROVIDER"
    assert outbox.codes == []


def test_forgot_password_inactive_account_is_rejected(client, db_session):
    email = unique_email("inactive")
    user = create_user_in_db(db_session, email=email)
    user.is_active = False
    db_session.commit()

    res = _forgot(client, email)
    assert res.status_code == 401
    assert res.json()["code"] == "ACCOUNT_DEACTIVATED"


def test_password_reset_happy_path(client, db_session, outbox):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)

    assert _forgot(client, email).status_code == 200
    otp = outbox.last_code(email, kind="reset")
    assert otp is not None and len(otp) == 4

    res = client.post("/auth/password/verify-otp", json={"email": email, "otp": otp})
    assert res.status_code == 200, res.text

    res = client.post("/auth/password/reset", json={"email": email, "password": "NewPassw0rd!"})
    assert res.status_code == 200, res.text

    assert db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email)) is None

    old = client.post("/auth/login", json={"email": email, "password": "Passw0rd!"})
    assert old.status_code == 401
    assert login(client, email, "NewPassw0rd!")


def test_new_request_replaces_previous_code(client, db_session, outbox):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)

    assert _forgot(client, email).status_code == 200
    assert _forgot(client, email).status_code == 200

    rows = db_session.scalars(select(PasswordResetCode).where(PasswordResetCode.email == email)).all()
    assert len(rows) == 1
    assert rows[0].code == outbox.last_code(email, kind="reset")


def test_wrong_otp_counts_attempts_and_locks_after_five(client, db_session, outbox):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)
    assert _forgot(client, email).status_code == 200
    otp = outbox.last_code(email, kind="reset")
    wrong = _wrong_code(otp)

    for attempt in range(1, 6):
        res = client.post("/auth/password/verify-otp", json={"email": email, "otp": wrong})
        assert res.status_code == 400
        body = res.json()
        assert body["code"] == "INVALID_CODE"
        assert body["remaining_attempts"] == 5 - attempt

    db_session.expire_all()
    record = db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email))
    assert record.attempts == 5

    # 올바른 코드여도 6번째 시도는 거부되고 레코드는 삭제됨
    res = client.post("/auth/password/verify-otp", json={"email": email, "otp": otp})
    assert res.status_code == 400
    assert res.json()["code"] == "TOO_MANY_ATTEMPTS"

    db_session.expire_all()
    assert db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email)) is None

    res = client.post("/auth/password/verify-otp", json={"email": email, "otp": otp})
    assert res.json()["code"] == "NO_REQUEST_FOUND"


def test_expired_otp_is_deleted(client, db_session, outbox):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)
    assert _forgot(client, email).status_code == 200
    otp = outbox.last_code(email, kind="reset")

    record = db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email))
    record.expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()

    res = client.post("/auth/password/verify-otp", json={"email": email, "otp": otp})
    assert res.status_code == 400
    assert res.json()["code"] == "CODE_EXPIRED"

    db_session.expire_all()
    assert db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email)) is None


def test_verified_otp_cannot_be_reused(client, db_session, outbox):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)
    assert _forgot(client, email).status_code == 200
    otp = outbox.last_code(email, kind="reset")

    assert client.post("/auth/password/verify-otp", json={"email": email, "otp": otp}).status_code == 200
    res = client.post("/auth/password/verify-otp", json={"email": email, "otp": otp})
    assert res.status_code == 400
    assert res.json()["code"] == "CODE_ALREADY_USED"


def test_reset_requires_verified_otp(client, db_session, outbox):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)
    assert _forgot(client, email).status_code == 200

    res = client.post("/auth/password/reset", json={"email": email, "password": "NewPassw0rd!"})
    assert res.status_code == 400
    assert res.json()["code"] == "RESET_NOT_VERIFIED"


def test_reset_allowed_within_grace_period(client, db_session, outbox):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)
    assert _forgot(client, email).status_code == 200
    otp = outbox.last_code(email, kind="reset")
    assert client.post("/auth/password/verify-otp", json={"email": email, "otp": otp}).status_code == 200

    # 코드 만료 1분 경과 (유예 2분 이내)
    record = db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email))
    record.expires_at = utcnow() - timedelta(minutes=1)
    db_session.commit()

    res = client.post("/auth/password/reset", json={"email": email, "password": "NewPassw0rd!"})
    assert res.status_code == 200, res.text


def test_reset_after_grace_period_fails(client, db_session, outbox):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)
    assert _forgot(client, email).status_code == 200
    otp = outbox.last_code(email, kind="reset")
    assert client.post("/auth/password/verify-otp", json={"email": email, "otp": otp}).status_code == 200

    record = db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email))
    record.expires_at = utcnow() - timedelta(minutes=3)
    db_session.commit()

    res = client.post("/auth/password/reset", json={"email": email, "password": "NewPassw0rd!"})
    assert res.status_code == 400
    assert res.json()["code"] == "CODE_EXPIRED"

    db_session.expire_all()
    assert db_session.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email)) is None
    assert login(client, email)


def test_change_password(client, db_session):
    email = unique_email("mentee")
    create_user_in_db(db_session, email=email)
    token = login(client, email)

    res = client.patch(
        "/auth/password",
        json={"current_password": "wrong-pass", "new_password": "NewPassw0rd!", "confirm_password": "NewPassw0rd!"},
        headers=auth_header(token),
    )
    assert res.status_code == 401

    res = client.patch(
        "/auth/password",
        json={"current_password": "Passw0rd!", "new_password": "NewPassw0rd!", "confirm_password": "Other0rd!!"},
        headers=auth_header(token),
    )
    assert res.status_code == 400
    assert "confirm_password" in res.json()["fields"]

    res = client.patch(
        "/auth/password",
        json={"current_password": "Passw0rd!", "new_password": "Passw0rd!", "confirm_password": "Passw0rd!"},
        headers=auth_header(token),
    )
    assert res.status_code == 400
    assert "new_password" in res.json()["fields"]

    res = client.patch(
        "/auth/password",
        json={"current_password": "Passw0rd!", "new_password": "NewPassw0rd!", "confirm_password": "NewPassw0rd!"},
        headers=auth_header(token),
    )
    assert res.status_code == 200, res.text
    assert login(client, email, "NewPassw0rd!")
