"""
services/payments.py

멘토 수익(Payment) 원장 비즈니스 로직.

이 파일은 멘티 결제 1건을 멘토 수익으로 기록하고
결제 상태(pending / succeeded / failed / refunded)를 변경한다.

지갑 잔액은 이 원장의 succeeded 합계를 기준으로 계산되므로
(app.services.wallet) 여기서는 지갑 캐시를 직접 건드리지 않는다.

설계 원칙:
- 금액은 Decimal, 소수 둘째 자리 반올림(half-up)
- mentor_amount 는 총액을 넘을 수 없음
- mentor_amount 미지정 시 총액에서 플랫폼 수수료율만큼 뺀 값

관련 파일:
- app.models.payment          : Payment / PaymentStatus
- app.routers.admin_payouts   : 관리자 수익 기록 API
- app.services.wallet         : 잔액 계산

"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.errors import NotFound, ValidationError
from app.models.admin_log import AdminAction
from app.models.payment import Payment, PaymentStatus
from app.services.admin_log import write_admin_log
from app.services.identity import get_mentor, get_user
from app.services.wallet import compute_fee, round2


logger = logging.getLogger(__name__)


"""
수익 기록

- mentor 존재 검증 (멘토가 아니면 NotFound)
- mentee_id 가 주어지면 존재 검증
- 기본 상태는 succeeded (바로 출금 가능 잔액에 반영)

"""

def record_payment(
    db: Session,
    *,
    mentor_id: uuid.UUID,
    amount: Decimal,
    mentor_amount: Decimal | None = None,
    mentee_id: uuid.UUID | None = None,
    status: PaymentStatus = PaymentStatus.SUCCEEDED,
    currency: str = "usd",
    description: str | None = None,
    created_by: uuid.UUID | None = None,
) -> Payment:
    amount = round2(amount)
    if amount <= 0:
        raise ValidationError("Amount must be greater than 0", fields={"amount": "Must be greater than 0"})

    if mentor_amount is None:
        _, mentor_amount = compute_fee(amount)
    mentor_amount = round2(mentor_amount)
    if mentor_amount < 0 or mentor_amount > amount:
        raise ValidationError(
            "Mentor amount must be between 0 and the payment amount",
            fields={"mentor_amount": "Must be between 0 and amount"},
        )

    get_mentor(db, mentor_id)
    if mentee_id is not None and not get_user(db, mentee_id):
        raise NotFound("Mentee not found")

    payment = Payment(
        mentor_id=mentor_id,
        mentee_id=mentee_id,
        amount=amount,
        mentor_amount=mentor_amount,
        platform_amount=amount - mentor_amount,
        currency=currency.lower(),
        status=status,
        description=description,
        created_by=created_by,
    )
    db.add(payment)
    db.flush()

    if created_by is not None:
        write_admin_log(
            db,
            actor_id=created_by,
            action=AdminAction.RECORD_PAYMENT,
            target_user_id=mentor_id,
            after_status=status.value,
            reason=description,
        )

    logger.info("Recorded payment %s for mentor %s: %s (%s)", payment.id, mentor_id, mentor_amount, status.value)
    return payment


def get_payment(db: Session, payment_id: uuid.UUID) -> Payment:
    payment = db.scalar(select(Payment).where(Payment.id == payment_id))
    if not payment:
        raise NotFound("Payment not found")
    return payment


def set_payment_status(db: Session, *, payment_id: uuid.UUID, status: PaymentStatus) -> Payment:
    payment = get_payment(db, payment_id)
    before = payment.status
    payment.status = status
    db.flush()
    logger.info("Payment %s status %s -> %s", payment.id, before.value, status.value)
    return payment
