from datetime import timedelta

from sqlalchemy import select

from app.core.clock import utcnow
from app.core.config import settings
from app.models.notification import Notification
from app.models.user import User, Role, ApprovalStatus
from app.models.verification import PendingUser
from tests.helpers import (
    auth_header, create_admin_in_db, create_user_in_db, register_and_verify, unique_email,
)


def _register(client, email, role="mentee"):
    return client.post(
        "/auth/register",
        json={
            "email": email,
            "password": "Passw0rd!",
            "role": role,
            "first_name": "New",
            "last_name": "User",
        },
    )


def test_register_sends_six_digit_code_and_creates_no_account(client, db_session, outbox):
    email = unique_email("mentee")
    res = _register(client, email)
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["data"]["email"] == email
    assert body["data"]["expires_in_minutes"] == 10
    assert "access_token" not in body["data"]

    code = outbox.last_code(email)
    assert code is not None and len(code) == 6 and code.isdigit()

    assert db_session.scalar(select(User).where(User.email == email)) is None
    assert db_session.scalar(select(PendingUser).where(PendingUser.email == email)) is not None


def test_register_replaces_previous_pending_registration(client, db_session, outbox):
    email = unique_email("mentee")
    assert _register(client, email).status_code == 201
    first_code = outbox.last_code(email)
    assert _register(client, email).status_code == 201
    second_code = outbox.last_code(email)

    rows = db_session.scalars(select(PendingUser).where(PendingUser.email == email)).all()
    assert len(rows) == 1
    assert rows[0].verification_code == second_code

    if first_code != second_code:
        res = client.post("/auth/verify-email", json={"email": email, "code": first_code})
        assert res.status_code == 400
        assert res.json()["code"] == "INVALID_OR_EXPIRED_CODE"


def test_register_existing_email_is_rejected(client, db_session):
    email = unique_email("taken")
    create_user_in_db(db_session, email=email)

    res = _register(client, email)
    assert res.status_code == 400
    assert res.json()["code"] == "DUPLICATE_EMAIL"
    assert db_session.scalar(select(PendingUser).where(PendingUser.email == email)) is None


def test_register_as_admin_is_rejected(client):
    res = _register(client, unique_email("sneaky"), role="admin")
    assert res.status_code == 400
    body = res.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert "role" in body["fields"]


def test_verify_mentee_creates_account_and_returns_token(client, db_session, outbox):
    email = unique_email("mentee")
    res = register_and_verify(client, outbox, email=email)
    assert res.status_code == 200, res.text
    data = res.json()["data"]
    assert data["access_token"]
    assert data["user"]["email"] == email
    assert data["user"]["role"] == "mentee"
    assert data["user"]["is_verified"] is True

    assert db_session.scalar(select(PendingUser).where(PendingUser.email == email)) is None

    me = client.get("/auth/me", headers=auth_header(data["access_token"]))
    assert me.status_code == 200
    assert me.json()["data"]["email"] == email


def test_verify_with_wrong_code_changes_nothing(client, db_session, outbox):
    email = unique_email("mentee")
    assert _register(client, email).status_code == 201
    code = outbox.last_code(email)
    wrong = "000000" if code != "000000" else "111111"

    res = client.post("/auth/verify-email", json={"email": email, "code": wrong})
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_OR_EXPIRED_CODE"

    assert db_session.scalar(select(User).where(User.email == email)) is None
    assert db_session.scalar(select(PendingUser).where(PendingUser.email == email)) is not None


def test_verify_with_expired_code_is_rejected(client, db_session, outbox):
    email = unique_email("mentee")
    assert _register(client, email).status_code == 201
    code = outbox.last_code(email)

    pending = db_session.scalar(select(PendingUser).where(PendingUser.email == email))
    pending.verification_code_expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()

    res = client.post("/auth/verify-email", json={"email": email, "code": code})
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_OR_EXPIRED_CODE"


def test_verify_mentor_waits_for_approval_and_notifies_admins(client, db_session, outbox):
    admin = create_admin_in_db(db_session, email=unique_email("admin"))
    email = unique_email("mentor")

    res = register_and_verify(client, outbox, email=email, role="mentor")
    assert res.status_code == 200, res.text
    body = res.json()
    assert "access_token" not in body["data"]
    assert body["data"]["user"]["mentor_approval_status"] == "pending"

    notes = db_session.scalars(select(Notification).where(Notification.user_id == admin.id)).all()
    assert len(notes) == 1
    assert notes[0].title == "New Mentor Signup Request"
    assert notes[0].type == "mentor_verification"

    login = client.post("/auth/login", json={"email": email, "password": "Passw0rd!"})
    assert login.status_code == 403
    assert login.json()["code"] == "APPROVAL_PENDING"


def test_mentor_is_approved_at_signup_when_verification_disabled(client, db_session, outbox, monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_MENTOR_VERIFICATION", False)
    email = unique_email("mentor")

    res = register_and_verify(client, outbox, email=email, role="mentor")
    assert res.status_code == 200, res.text
    data = res.json()["data"]
    assert data["access_token"]
    assert data["user"]["mentor_approval_status"] == "approved"

    user = db_session.scalar(select(User).where(User.email == email))
    assert user.mentor_approval_status == ApprovalStatus.APPROVED


def test_resend_verification_issues_new_code(client, outbox):
    email = unique_email("mentee")
    assert _register(client, email).status_code == 201

    res = client.post("/auth/resend-verification", json={"email": email})
    assert res.status_code == 200, res.text
    assert len([c for c in outbox.codes if c["email"] == email]) == 2

    verify = client.post("/auth/verify-email", json={"email": email, "code": outbox.last_code(email)})
    assert verify.status_code == 200, verify.text


def test_resend_verification_errors(client, db_session):
    res = client.post("/auth/resend-verification", json={"email": unique_email("nobody")})
    assert res.status_code == 404
    assert res.json()["code"] == "NOT_FOUND"

    verified = unique_email("done")
    create_user_in_db(db_session, email=verified)
    res = client.post("/auth/resend-verification", json={"email": verified})
    assert res.status_code == 400
    assert res.json()["code"] == "ALREADY_VERIFIED"


def test_legacy_account_verifies_with_inline_code(client, db_session):
    email = unique_email("legacy")
    user = create_user_in_db(db_session, email=email, is_verified=False)
    user.verification_code = "123456"
    user.verification_code_expires_at = utcnow() + timedelta(minutes=5)
    db_session.commit()

    res = client.post("/auth/verify-email", json={"email": email, "code": "123456"})
    assert res.status_code == 200, res.text
    assert res.json()["data"]["access_token"]

    db_session.expire_all()
    user = db_session.scalar(select(User).where(User.email == email))
    assert user.is_verified is True
    assert user.verification_code is None
    assert user.role == Role.MENTEE
