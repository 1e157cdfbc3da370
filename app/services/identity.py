"""
services/identity.py

계정(Identity) 저장소 비즈니스 로직.

이 파일은 계정 조회 / 생성 / 비밀번호 검증 / 비밀번호 변경을 담당한다.
이메일 인증 흐름(app.services.verification)과 로그인 흐름이
모두 이 파일의 함수를 통해 계정을 다룬다.

설계 원칙:
- 이메일은 항상 소문자 + 공백 제거 후 저장/비교
- 비밀번호는 평문으로 저장/비교하지 않음 (bcrypt 해시만 보관)
- 해시는 비밀번호를 실제로 바꿀 때(set_password)만 새로 계산
- 트랜잭션 제어(commit)는 라우터에서 수행, 여기서는 flush 까지만

관련 파일:
- app.models.user        : User / Role / AuthProvider / ApprovalStatus
- app.core.security      : 비밀번호 해시 / 검증

"""

import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import DuplicateEmail, NotFound, ValidationError
from app.core.security import get_password_hash, verify_password
from app.models.user import User, Role, AuthProvider, ApprovalStatus


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.scalar(select(User).where(User.email == normalize_email(email)))


def get_user(db: Session, user_id: uuid.UUID) -> User | None:
    return db.scalar(select(User).where(User.id == user_id))


def get_mentor(db: Session, mentor_id: uuid.UUID) -> User:
    mentor = db.scalar(select(User).where(User.id == mentor_id, User.role == Role.MENTOR))
    if not mentor:
        raise NotFound("Mentor not found")
    return mentor


def default_approval_status(role: Role | None) -> ApprovalStatus | None:
    if role == Role.MENTOR:
        return None
    return ApprovalStatus.NOT_APPLICABLE


"""
계정 생성

- local 계정: password(평문 또는 이미 해시된 password_hash) 와 role 필수
- google 계정: password 없음, role 은 아직 선택 전이면 None 허용
- 이메일 중복이면 DuplicateEmail
- password 가 주어지면 여기서 한 번만 해시

"""

def create_user(
    db: Session,
    *,
    email: str,
    first_name: str,
    last_name: str,
    role: Role | None,
    password: str | None = None,
    password_hash: str | None = None,
    auth_provider: AuthProvider = AuthProvider.LOCAL,
    google_id: str | None = None,
    is_verified: bool = False,
    mentor_approval_status: ApprovalStatus | None = None,
) -> User:
    email = normalize_email(email)

    if auth_provider == AuthProvider.LOCAL:
        errors = {}
        if not password and not password_hash:
            errors["password"] = "Password is required"
        if role is None:
            errors["role"] = "Role is required"
        if errors:
            raise ValidationError("Local accounts require a password and a role", fields=errors)

    if get_user_by_email(db, email):
        raise DuplicateEmail()

    if role != Role.MENTOR:
        mentor_approval_status = default_approval_status(role)

    user = User(
        email=email,
        password_hash=password_hash or (get_password_hash(password) if password else None),
        auth_provider=auth_provider,
        google_id=google_id,
        role=role,
        is_active=True,
        is_verified=is_verified,
        mentor_approval_status=mentor_approval_status,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
    )
    db.add(user)
    db.flush()
    return user


def check_password(user: User, candidate: str) -> bool:
    if user.auth_provider != AuthProvider.LOCAL:
        return False
    return verify_password(candidate, user.password_hash)


def set_password(user: User, new_password: str) -> None:
    user.password_hash = get_password_hash(new_password)
