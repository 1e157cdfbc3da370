# tests/helpers.py
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import select

from app.models.user import User, Role, ApprovalStatus
from app.models.payment import PaymentStatus
from app.services.identity import create_user
from app.services.payments import record_payment


DEFAULT_PASSWORD = "Passw0rd!"


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def unique_email(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:6]}@test.com"


def create_user_in_db(
    db: Session,
    *,
    email: str,
    password: str = DEFAULT_PASSWORD,
    role: Role = Role.MENTEE,
    is_verified: bool = True,
    approval: ApprovalStatus | None = None,
    first_name: str = "Test",
    last_name: str = "User",
) -> User:
    user = create_user(
        db,
        email=email,
        password=password,
        role=role,
        first_name=first_name,
        last_name=last_name,
        is_verified=is_verified,
        mentor_approval_status=approval,
    )
    db.commit()
    db.refresh(user)
    return user


def create_admin_in_db(db: Session, *, email: str, password: str = DEFAULT_PASSWORD) -> User:
    return create_user_in_db(db, email=email, password=password, role=Role.ADMIN, first_name="Admin", last_name="User")


def login(client, email: str, password: str = DEFAULT_PASSWORD) -> str:
    res = client.post("/auth/login", json={"email": email, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["data"]["access_token"]


def setup_admin(client, db: Session) -> dict:
    email = unique_email("admin")
    admin = create_admin_in_db(db, email=email)
    return {"id": admin.id, "email": email, "token": login(client, email)}


def setup_mentor(client, db: Session, *, earnings: Decimal | None = None) -> dict:
    """
    승인된 MENTOR + 토큰 + 출금 수단 1개 세팅 (earnings 가 있으면 succeeded 수익 1건 기록)
    """
    email = unique_email("mentor")
    mentor = create_user_in_db(
        db, email=email, role=Role.MENTOR, approval=ApprovalStatus.APPROVED, first_name="Mentor"
    )
    if earnings is not None:
        record_payment(
            db,
            mentor_id=mentor.id,
            amount=earnings,
            mentor_amount=earnings,
            status=PaymentStatus.SUCCEEDED,
            description="Session",
        )
        db.commit()

    token = login(client, email)
    res = client.post(
        "/mentor/wallet/payout-methods",
        json={
            "bank_name": "Test Bank",
            "country": "US",
            "account_number": "000123456789",
            "account_title": "Mentor User",
            "is_default": True,
        },
        headers=auth_header(token),
    )
    assert res.status_code == 201, res.text
    method_id = res.json()["data"][0]["id"]

    return {"id": mentor.id, "email": email, "token": token, "method_id": method_id}


def register_and_verify(client, outbox, *, email: str, role: str = "mentee", password: str = DEFAULT_PASSWORD):
    reg = client.post(
        "/auth/register",
        json={
            "email": email,
            "password": password,
            "role": role,
            "first_name": "New",
            "last_name": "User",
        },
    )
    assert reg.status_code == 201, reg.text
    code = outbox.last_code(email)
    assert code is not None
    return client.post("/auth/verify-email", json={"email": email, "code": code})


def get_user(db: Session, user_id) -> User:
    if isinstance(user_id, str):
        user_id = uuid.UUID(user_id)
    return db.scalar(select(User).where(User.id == user_id))
