"""
user.py

사용자(User) 계정 및 권한(Role) / 멘토 승인 상태 모델 정의 파일.

이 파일은 이메일 인증을 마친 계정(멘티, 멘토, 관리자)의
기본 정보와 권한(Role), 멘토 승인 상태, 로그인 일시정지 여부,
프로필 정보를 관리한다.

모든 인증, 권한, 멘토 승인, 지갑 기능의 기준이 되는 핵심 모델이다.

"""

import uuid
import datetime
from enum import Enum

from sqlalchemy import String, Boolean, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.core.clock import utcnow
from app.db.types import UTCDateTime


"""
사용자 권한(Role) 정의

- MENTEE  : 서비스를 예약하는 사용자
- MENTOR  : 서비스를 제공하고 수익을 출금하는 사용자
- ADMIN   : 관리자

"""

class Role(str, Enum):
    MENTEE = "mentee"
    MENTOR = "mentor"
    ADMIN = "admin"


class AuthProvider(str, Enum):
    LOCAL = "local"
    GOOGLE = "google"


"""
멘토 승인 상태 정의

- NOT_APPLICABLE : 멘토가 아닌 계정 (멘티 / 관리자)
- PENDING        : 관리자 승인 대기
- APPROVED       : 승인됨
- REJECTED       : 거절됨

NULL 은 승인 기능 도입 이전에 만들어진 멘토(grandfathered)를 의미하며
승인된 것으로 취급한다.

"""

class ApprovalStatus(str, Enum):
    NOT_APPLICABLE = "not_applicable"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


"""
사용자(User) 모델

- email 은 전역 고유 (소문자 / 공백 제거 후 저장)
- password_hash / role 은 local 인증 계정에서만 필수
- is_active=False 는 비활성화(삭제 대신 플래그)
- verification_code* 는 구버전 인라인 인증 코드 (하위 호환)
- is_login_paused 는 승인 상태와 독립적인 관리자 로그인 차단 플래그

"""

class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)

    auth_provider: Mapped[AuthProvider] = mapped_column(
        SAEnum(AuthProvider, name="auth_provider"), nullable=False, default=AuthProvider.LOCAL
    )
    google_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    role: Mapped[Role | None] = mapped_column(SAEnum(Role, name="user_role"), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    verification_code: Mapped[str | None] = mapped_column(String(10), nullable=True)
    verification_code_expires_at: Mapped[datetime.datetime | None] = mapped_column(UTCDateTime, nullable=True)

    mentor_approval_status: Mapped[ApprovalStatus | None] = mapped_column(
        SAEnum(ApprovalStatus, name="mentor_approval_status"), nullable=True, index=True
    )
    is_login_paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    avatar: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(30), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    timezone: Mapped[str] = mapped_column(String(64), nullable=False, default="UTC")

    created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(
        UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    # NULL(grandfathered) 멘토는 승인된 것으로 취급
    @property
    def effective_approval_status(self) -> ApprovalStatus:
        if self.role != Role.MENTOR:
            return ApprovalStatus.NOT_APPLICABLE
        if self.mentor_approval_status is None:
            return ApprovalStatus.APPROVED
        return self.mentor_approval_status
