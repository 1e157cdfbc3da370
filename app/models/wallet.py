"""
wallet.py

멘토 지갑(Wallet) / 출금 수단(Payout Method) / 출금 요청(Payout Request) 모델 정의 파일.

이 파일은 멘토의 수익 출금 흐름 전반에서 사용하는 테이블을 정의한다.

설계 원칙:
- MentorWallet 의 금액 컬럼은 캐시(materialized view)일 뿐이며
  실제 기준은 payments(수익) + payout_requests(출금) 이력이다
- 잔액 변경은 항상 DB 원자적 증감(UPDATE ... SET col = col + :delta)으로 수행
- PayoutRequest 는 출금 수단을 참조하지 않고 요청 시점 값을 복사(snapshot)한다
  (이후 수단을 수정/삭제해도 이력은 변하지 않음)

관련 파일:
- app.services.wallet    : 잔액 재계산 / 출금 요청 / 완료 / 거절 로직
- app.models.payment     : 수익(earnings) 원장

"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Numeric, String, Text, Uuid, Index
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import utcnow
from app.db.base import Base
from app.db.types import UTCDateTime


ZERO = Decimal("0.00")


class MentorWallet(Base):
    """멘토당 1개의 지갑 캐시 레코드."""

    __tablename__ = "mentor_wallets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    mentor_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), unique=True, nullable=False)

    available_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    total_withdrawn: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    pending_earnings: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)


class PayoutMethod(Base):
    """멘토 출금 수단. is_default=True 는 멘토당 최대 1개."""

    __tablename__ = "payout_methods"
    __table_args__ = (
        Index("ix_payout_methods_mentor_id", "mentor_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    mentor_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)

    type: Mapped[str] = mapped_column(String(50), nullable=False, default="Bank Transfer")
    bank_name: Mapped[str] = mapped_column(String(120), nullable=False)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    account_number: Mapped[str] = mapped_column(String(64), nullable=False)
    account_title: Mapped[str] = mapped_column(String(120), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)


"""
출금 요청 상태

- PENDING     : 요청 직후 (총액이 잔액에서 잠김)
- PROCESSING  : 관리자 처리 중 (선택 단계)
- COMPLETED   : 송금 완료 (종료 상태)
- REJECTED    : 거절, 총액 환불 (종료 상태)

"""

class PayoutStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    REJECTED = "rejected"


OPEN_PAYOUT_STATUSES = (PayoutStatus.PENDING, PayoutStatus.PROCESSING)


class PayoutRequest(Base):
    """출금 요청 1건.

    - amount: 멘토가 요청한 총액(gross)
    - platform_fee: round2(amount * 수수료율)
    - net_amount: amount - platform_fee (실제 송금액)
    - method_*: 요청 시점 출금 수단 snapshot
    """

    __tablename__ = "payout_requests"
    __table_args__ = (
        Index("ix_payout_requests_mentor_id", "mentor_id"),
        Index("ix_payout_requests_status", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    mentor_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    platform_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)
    net_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=ZERO)

    method_type: Mapped[str] = mapped_column(String(50), nullable=False, default="Bank Transfer")
    method_bank_name: Mapped[str] = mapped_column(String(120), nullable=False)
    method_country: Mapped[str] = mapped_column(String(100), nullable=False)
    method_account_number: Mapped[str] = mapped_column(String(64), nullable=False)
    method_account_title: Mapped[str] = mapped_column(String(120), nullable=False)

    status: Mapped[PayoutStatus] = mapped_column(
        SAEnum(PayoutStatus, name="payout_status"), nullable=False, default=PayoutStatus.PENDING
    )

    receipt_image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    processed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)
