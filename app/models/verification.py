"""
verification.py

이메일 인증 관련 임시 레코드 모델 정의 파일.

- PendingUser        : 이메일 인증 전의 가입 대기 레코드
- PasswordResetCode  : 비밀번호 재설정용 4자리 OTP 레코드

두 테이블 모두 이메일당 최대 1개의 레코드만 유지한다 (email unique).
만료된 레코드는 조회 시 무시되고, 정리 작업(app.services.purge)에서 물리 삭제된다.

"""

import uuid
import datetime

from sqlalchemy import String, Integer, Boolean, Uuid
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base
from app.core.clock import utcnow
from app.db.types import UTCDateTime
from app.models.user import Role, ApprovalStatus


"""
가입 대기(PendingUser) 모델

- 인증 코드(6자리) 와 코드 만료 시각(10분)
- mentor_approval_status 는 가입 시점의 기능 플래그로 미리 결정
- expires_at : 코드 상태와 무관하게 생성 24시간 후 자동 정리

"""

class PendingUser(Base):
    __tablename__ = "pending_users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(SAEnum(Role, name="user_role"), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    verification_code: Mapped[str] = mapped_column(String(10), nullable=False)
    verification_code_expires_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False)

    mentor_approval_status: Mapped[ApprovalStatus | None] = mapped_column(
        SAEnum(ApprovalStatus, name="mentor_approval_status"), nullable=True
    )

    created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    expires_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False, index=True)


class PasswordResetCode(Base):
    """비밀번호 재설정 OTP.

    - code: 4자리, 발급 후 5분 유효
    - attempts: 실패 횟수 (5회 이상이면 사용 불가)
    - verified: 코드 확인 완료 여부 (비밀번호 변경 후 삭제)
    """

    __tablename__ = "password_reset_codes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    code: Mapped[str] = mapped_column(String(4), nullable=False)
    expires_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
