"""
services/wallet.py

멘토 지갑(Wallet) / 출금(Payout) 비즈니스 로직.

이 파일은 멘토 수익 잔액 계산, 출금 수단 관리,
출금 요청 / 완료 / 거절의 전체 흐름을 담당한다.

잔액 공식 (항상 원장 기준):
    available = Σ(succeeded 수익) - Σ(completed 출금) - Σ(pending/processing 출금)

주요 기능:
- 지갑 조회 시 원장 기준으로 잔액 재계산 후, 값이 달라졌을 때만 캐시 저장
- 출금 수단 추가 / 수정 / 삭제 (기본 수단은 멘토당 최대 1개)
- 출금 요청: 최소 금액 / 수단 / 잔액 확인 후 총액(gross) 잠금
- 관리자 처리: processing / completed / rejected (거절 시 총액 환불)

설계 원칙:
- 잔액 변경은 읽고-쓰기 대신 DB 원자적 증감 (UPDATE ... SET col = col +/- :amount)
- 출금 잠금은 조건부 UPDATE (available_balance >= :amount), 0건이면 잔액 부족
- 같은 멘토의 지갑 변경은 지갑 행 잠금(SELECT ... FOR UPDATE)으로 직렬화
- 상태 전이도 조건부 UPDATE 로 수행하여 동시 처리 시 한 번만 성공
- 잠금 + 요청 생성은 같은 트랜잭션, commit 은 라우터에서 한 번만

관련 파일:
- app.models.wallet      : MentorWallet / PayoutMethod / PayoutRequest
- app.models.payment     : 수익 원장
- app.routers.wallet     : 멘토 지갑 API
- app.routers.admin_payouts : 관리자 출금 처리 API

"""

import logging
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import settings
from app.core.errors import (
    AlreadyCompleted,
    BelowMinimumWithdrawal,
    InsufficientBalance,
    InvalidPayoutState,
    MethodNotFound,
    NotFound,
    ValidationError,
)
from app.models.admin_log import AdminAction
from app.models.notification import NotificationPriority
from app.models.payment import Payment, PaymentStatus
from app.models.wallet import (
    ZERO,
    MentorWallet,
    PayoutMethod,
    PayoutRequest,
    PayoutStatus,
    OPEN_PAYOUT_STATUSES,
)
from app.services.admin_log import write_admin_log
from app.services.notifications import send_notification


logger = logging.getLogger(__name__)


CENT = Decimal("0.01")
RECENT_EARNINGS_LIMIT = 10
PAYOUT_METHOD_FIELDS = ("type", "bank_name", "country", "account_number", "account_title")


def round2(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _money(value) -> Decimal:
    return round2(value if value is not None else 0)


# 수수료 = round2(총액 * 수수료율), 실수령액 = 총액 - 수수료
def compute_fee(amount: Decimal, rate: Decimal | None = None) -> tuple[Decimal, Decimal]:
    amount = round2(amount)
    fee = round2(amount * (settings.PLATFORM_FEE_RATE if rate is None else rate))
    return fee, amount - fee


# ======================================================
# 지갑 잔액 계산
# ======================================================

@dataclass
class WalletTotals:
    total_earnings: Decimal
    total_withdrawn: Decimal
    locked: Decimal
    pending_earnings: Decimal

    @property
    def available_balance(self) -> Decimal:
        return self.total_earnings - self.total_withdrawn - self.locked


@dataclass
class WalletView:
    available_balance: Decimal
    total_withdrawn: Decimal
    total_earnings: Decimal
    pending_earnings: Decimal
    payout_methods: list = field(default_factory=list)
    payout_requests: list = field(default_factory=list)
    recent_earnings: list = field(default_factory=list)


def _sum_payments(db: Session, mentor_id: uuid.UUID, status: PaymentStatus) -> Decimal:
    total = db.scalar(
        select(func.coalesce(func.sum(Payment.mentor_amount), 0)).where(
            Payment.mentor_id == mentor_id,
            Payment.status == status,
        )
    )
    return _money(total)


def _sum_payouts(db: Session, mentor_id: uuid.UUID, statuses) -> Decimal:
    total = db.scalar(
        select(func.coalesce(func.sum(PayoutRequest.amount), 0)).where(
            PayoutRequest.mentor_id == mentor_id,
            PayoutRequest.status.in_(statuses),
        )
    )
    return _money(total)


def compute_totals(db: Session, mentor_id: uuid.UUID) -> WalletTotals:
    return WalletTotals(
        total_earnings=_sum_payments(db, mentor_id, PaymentStatus.SUCCEEDED),
        total_withdrawn=_sum_payouts(db, mentor_id, [PayoutStatus.COMPLETED]),
        locked=_sum_payouts(db, mentor_id, list(OPEN_PAYOUT_STATUSES)),
        pending_earnings=_sum_payments(db, mentor_id, PaymentStatus.PENDING),
    )


"""
멘토 지갑 행 조회 (없으면 생성)

- lock=True 이면 SELECT ... FOR UPDATE 로 같은 멘토의 지갑 변경을 직렬화
  (SQLite 는 FOR UPDATE 를 무시하며, DB 단위 쓰기 잠금으로 대신함)
- 동시에 첫 생성이 겹쳐 unique(mentor_id) 충돌이 나면 SAVEPOINT 만 되돌리고 기존 행을 다시 조회

"""

def get_or_create_wallet(db: Session, mentor_id: uuid.UUID, *, lock: bool = False) -> MentorWallet:
    stmt = select(MentorWallet).where(MentorWallet.mentor_id == mentor_id)
    if lock:
        stmt = stmt.with_for_update()
    wallet = db.scalar(stmt)
    if wallet is not None:
        return wallet

    try:
        with db.begin_nested():
            wallet = MentorWallet(
                mentor_id=mentor_id,
                available_balance=ZERO,
                total_withdrawn=ZERO,
                pending_earnings=ZERO,
            )
            db.add(wallet)
    except IntegrityError:
        logger.info("Wallet for mentor %s was created concurrently, reusing it", mentor_id)
        wallet = db.scalar(stmt)
    return wallet


"""
지갑 캐시 재계산 (reconciliation)

- 원장 기준 합계를 구해 캐시 컬럼과 비교
- 값이 다를 때만 UPDATE (불필요한 쓰기 방지)
- 같은 입력이면 몇 번을 호출해도 결과 동일

"""

def reconcile_wallet(db: Session, mentor_id: uuid.UUID) -> tuple[MentorWallet, WalletTotals]:
    wallet = get_or_create_wallet(db, mentor_id, lock=True)
    totals = compute_totals(db, mentor_id)

    stale = (
        _money(wallet.available_balance) != totals.available_balance
        or _money(wallet.total_withdrawn) != totals.total_withdrawn
        or _money(wallet.pending_earnings) != totals.pending_earnings
    )
    if stale:
        wallet.available_balance = totals.available_balance
        wallet.total_withdrawn = totals.total_withdrawn
        wallet.pending_earnings = totals.pending_earnings
        db.flush()
        logger.info(
            "Wallet for mentor %s reconciled: available=%s withdrawn=%s",
            mentor_id, totals.available_balance, totals.total_withdrawn,
        )
    return wallet, totals


def list_payout_methods(db: Session, mentor_id: uuid.UUID) -> list[PayoutMethod]:
    return db.scalars(
        select(PayoutMethod)
        .where(PayoutMethod.mentor_id == mentor_id)
        .order_by(PayoutMethod.created_at, PayoutMethod.id)
    ).all()


def list_mentor_payouts(db: Session, mentor_id: uuid.UUID, limit: int | None = None) -> list[PayoutRequest]:
    return db.scalars(
        select(PayoutRequest)
        .where(PayoutRequest.mentor_id == mentor_id)
        .order_by(PayoutRequest.created_at.desc())
        .limit(limit or settings.PAYOUT_HISTORY_LIMIT)
    ).all()


def get_wallet(db: Session, mentor_id: uuid.UUID) -> WalletView:
    _, totals = reconcile_wallet(db, mentor_id)

    recent_earnings = db.scalars(
        select(Payment)
        .where(Payment.mentor_id == mentor_id, Payment.status == PaymentStatus.SUCCEEDED)
        .order_by(Payment.created_at.desc())
        .limit(RECENT_EARNINGS_LIMIT)
    ).all()

    return WalletView(
        available_balance=totals.available_balance,
        total_withdrawn=totals.total_withdrawn,
        total_earnings=totals.total_earnings,
        pending_earnings=totals.pending_earnings,
        payout_methods=list_payout_methods(db, mentor_id),
        payout_requests=list_mentor_payouts(db, mentor_id),
        recent_earnings=recent_earnings,
    )


# ======================================================
# 출금 수단
# ======================================================

def _clear_default(db: Session, mentor_id: uuid.UUID) -> None:
    db.execute(
        update(PayoutMethod)
        .where(PayoutMethod.mentor_id == mentor_id, PayoutMethod.is_default.is_(True))
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )


def _validate_method_fields(values: dict, *, partial: bool) -> dict:
    cleaned = {}
    missing = {}
    for name in PAYOUT_METHOD_FIELDS:
        value = values.get(name)
        if value is None and partial:
            continue
        value = (value or "").strip()
        if not value:
            missing[name] = "This field is required"
            continue
        cleaned[name] = value
    if missing:
        raise ValidationError(
            "All payout method details (including bank and country) are required",
            fields=missing,
        )
    return cleaned


"""
출금 수단 추가

- type / bank_name / country / account_number / account_title 모두 필수
- is_default=True 이면 기존 수단의 기본 지정을 먼저 해제
- 반환값: 멘토의 전체 출금 수단 목록

"""

def add_payout_method(db: Session, *, mentor_id: uuid.UUID, is_default: bool = False, **fields) -> list[PayoutMethod]:
    cleaned = _validate_method_fields(fields, partial=False)

    get_or_create_wallet(db, mentor_id, lock=True)
    if is_default:
        _clear_default(db, mentor_id)

    db.add(PayoutMethod(mentor_id=mentor_id, is_default=bool(is_default), **cleaned))
    db.flush()
    return list_payout_methods(db, mentor_id)


def _get_method(db: Session, mentor_id: uuid.UUID, method_id: uuid.UUID) -> PayoutMethod | None:
    return db.scalar(
        select(PayoutMethod).where(PayoutMethod.id == method_id, PayoutMethod.mentor_id == mentor_id)
    )


def update_payout_method(
    db: Session,
    *,
    mentor_id: uuid.UUID,
    method_id: uuid.UUID,
    is_default: bool | None = None,
    **fields,
) -> list[PayoutMethod]:
    get_or_create_wallet(db, mentor_id, lock=True)

    method = _get_method(db, mentor_id, method_id)
    if not method:
        raise NotFound("Payout method not found")

    for name, value in _validate_method_fields(fields, partial=True).items():
        setattr(method, name, value)

    if is_default is not None:
        if is_default:
            _clear_default(db, mentor_id)
        method.is_default = is_default

    db.flush()
    return list_payout_methods(db, mentor_id)


# 기본 수단을 삭제해도 새 기본 수단을 자동 지정하지 않음
def delete_payout_method(db: Session, *, mentor_id: uuid.UUID, method_id: uuid.UUID) -> list[PayoutMethod]:
    method = _get_method(db, mentor_id, method_id)
    if method:
        db.delete(method)
        db.flush()
    return list_payout_methods(db, mentor_id)


# ======================================================
# 출금 요청 (멘토)
# ======================================================

"""
출금 요청

확인 순서:
1) 최소 출금액 미만        -> BelowMinimumWithdrawal
2) 본인 출금 수단이 아님    -> MethodNotFound
3) 잔액 부족               -> InsufficientBalance

성공 시:
- 지갑 재계산 후 조건부 UPDATE 로 총액(gross) 잠금
- 수수료 / 실수령액 계산, 출금 수단 snapshot 복사
- pending 상태의 출금 요청 생성
- 잠금과 요청 생성은 같은 트랜잭션 (라우터에서 commit, 실패 시 rollback)

"""

def request_withdrawal(db: Session, *, mentor_id: uuid.UUID, amount, method_id: uuid.UUID) -> PayoutRequest:
    amount = round2(amount)
    minimum = round2(settings.MIN_WITHDRAWAL_AMOUNT)
    if amount < minimum:
        raise BelowMinimumWithdrawal(f"Minimum withdrawal amount is ${minimum}")

    method = _get_method(db, mentor_id, method_id)
    if not method:
        raise MethodNotFound()

    wallet, _ = reconcile_wallet(db, mentor_id)

    result = db.execute(
        update(MentorWallet)
        .where(MentorWallet.mentor_id == mentor_id, MentorWallet.available_balance >= amount)
        .values(available_balance=MentorWallet.available_balance - amount, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise InsufficientBalance()
    db.expire(wallet)

    fee, net = compute_fee(amount)
    payout = PayoutRequest(
        mentor_id=mentor_id,
        amount=amount,
        platform_fee=fee,
        net_amount=net,
        method_type=method.type,
        method_bank_name=method.bank_name,
        method_country=method.country,
        method_account_number=method.account_number,
        method_account_title=method.account_title,
        status=PayoutStatus.PENDING,
    )
    db.add(payout)
    db.flush()

    logger.info("Mentor %s requested payout %s: gross=%s fee=%s net=%s", mentor_id, payout.id, amount, fee, net)
    return payout


# ======================================================
# 출금 처리 (관리자)
# ======================================================

def get_payout(db: Session, payout_id: uuid.UUID) -> PayoutRequest:
    payout = db.scalar(select(PayoutRequest).where(PayoutRequest.id == payout_id))
    if not payout:
        raise NotFound("Payout request not found")
    return payout


# 현재 상태가 from_statuses 중 하나일 때만 전이 (동시 처리 시 한 번만 성공)
def _transition(db: Session, payout: PayoutRequest, from_statuses, **values) -> bool:
    result = db.execute(
        update(PayoutRequest)
        .where(PayoutRequest.id == payout.id, PayoutRequest.status.in_(list(from_statuses)))
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    db.refresh(payout)
    return result.rowcount == 1


def list_payouts(
    db: Session, *, status: PayoutStatus | None = None, page: int = 1, limit: int = 20
) -> tuple[list[PayoutRequest], int]:
    stmt = select(PayoutRequest)
    count_stmt = select(func.count()).select_from(PayoutRequest)
    if status is not None:
        stmt = stmt.where(PayoutRequest.status == status)
        count_stmt = count_stmt.where(PayoutRequest.status == status)

    total = db.scalar(count_stmt) or 0
    rows = db.scalars(
        stmt.order_by(PayoutRequest.created_at.desc()).offset((page - 1) * limit).limit(limit)
    ).all()
    return rows, total


def mark_processing(
    db: Session, *, payout_id: uuid.UUID, actor_id: uuid.UUID, ip: str | None = None, user_agent: str | None = None
) -> PayoutRequest:
    payout = get_payout(db, payout_id)
    if not _transition(db, payout, [PayoutStatus.PENDING], status=PayoutStatus.PROCESSING):
        raise InvalidPayoutState(f"Cannot mark a {payout.status.value} request as processing")

    write_admin_log(
        db,
        actor_id=actor_id,
        action=AdminAction.MARK_PAYOUT_PROCESSING,
        target_user_id=payout.mentor_id,
        target_payout_id=payout.id,
        before_status=PayoutStatus.PENDING.value,
        after_status=PayoutStatus.PROCESSING.value,
        ip=ip,
        user_agent=user_agent,
    )
    return payout


"""
출금 완료 처리

- 이미 completed 이면 AlreadyCompleted, rejected 이면 InvalidPayoutState
- 영수증 / 메모 / 처리 시각 / 처리자 기록
- total_withdrawn 을 총액(gross) 만큼 원자적 증가
  (available_balance 는 요청 시점에 이미 차감되었으므로 변경 없음)
- 멘토에게 실수령액 / 수수료 내역 알림

"""

def complete_payout(
    db: Session,
    *,
    payout_id: uuid.UUID,
    actor_id: uuid.UUID,
    receipt_image: str | None = None,
    admin_notes: str | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
) -> PayoutRequest:
    payout = get_payout(db, payout_id)
    before = payout.status
    if before == PayoutStatus.COMPLETED:
        raise AlreadyCompleted()
    if before not in OPEN_PAYOUT_STATUSES:
        raise InvalidPayoutState(f"Cannot complete a {before.value} request")

    moved = _transition(
        db,
        payout,
        OPEN_PAYOUT_STATUSES,
        status=PayoutStatus.COMPLETED,
        receipt_image=receipt_image,
        admin_notes=admin_notes,
        processed_at=utcnow(),
        processed_by=actor_id,
    )
    if not moved:
        if payout.status == PayoutStatus.COMPLETED:
            raise AlreadyCompleted()
        raise InvalidPayoutState(f"Cannot complete a {payout.status.value} request")

    wallet = get_or_create_wallet(db, payout.mentor_id)
    db.execute(
        update(MentorWallet)
        .where(MentorWallet.mentor_id == payout.mentor_id)
        .values(total_withdrawn=MentorWallet.total_withdrawn + payout.amount, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.expire(wallet)

    write_admin_log(
        db,
        actor_id=actor_id,
        action=AdminAction.COMPLETE_PAYOUT,
        target_user_id=payout.mentor_id,
        target_payout_id=payout.id,
        before_status=before.value,
        after_status=PayoutStatus.COMPLETED.value,
        reason=admin_notes,
        ip=ip,
        user_agent=user_agent,
    )

    gross = round2(payout.amount)
    net = round2(payout.net_amount)
    send_notification(
        db,
        user_id=payout.mentor_id,
        type="payout_completed",
        title="Withdrawal Successfully Disbursed",
        message=(
            f"A net amount of ${net} has been successfully sent to your account. "
            f"(Gross request: ${gross}, Platform Fee: ${gross - net})"
        ),
        priority=NotificationPriority.MEDIUM,
        action_url="/mentor/wallet",
    )

    logger.info("Payout %s completed by %s (gross=%s net=%s)", payout.id, actor_id, gross, net)
    return payout


"""
출금 거절 처리

- pending / processing 상태만 거절 가능 (그 외 InvalidPayoutState)
- 총액(gross) 전액을 available_balance 로 원자적 환불
- 상태 변경과 환불은 같은 트랜잭션
- 멘토에게 거절 사유 알림

"""

def reject_payout(
    db: Session,
    *,
    payout_id: uuid.UUID,
    actor_id: uuid.UUID,
    admin_notes: str | None = None,
    ip: str | None = None,
    user_agent: str | None = None,
) -> PayoutRequest:
    payout = get_payout(db, payout_id)
    before = payout.status
    if before not in OPEN_PAYOUT_STATUSES:
        raise InvalidPayoutState(f"Cannot reject a {before.value} request")

    moved = _transition(
        db,
        payout,
        OPEN_PAYOUT_STATUSES,
        status=PayoutStatus.REJECTED,
        admin_notes=admin_notes,
        processed_at=utcnow(),
        processed_by=actor_id,
    )
    if not moved:
        raise InvalidPayoutState(f"Cannot reject a {payout.status.value} request")

    wallet = get_or_create_wallet(db, payout.mentor_id)
    db.execute(
        update(MentorWallet)
        .where(MentorWallet.mentor_id == payout.mentor_id)
        .values(available_balance=MentorWallet.available_balance + payout.amount, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.expire(wallet)

    write_admin_log(
        db,
        actor_id=actor_id,
        action=AdminAction.REJECT_PAYOUT,
        target_user_id=payout.mentor_id,
        target_payout_id=payout.id,
        before_status=before.value,
        after_status=PayoutStatus.REJECTED.value,
        reason=admin_notes,
        ip=ip,
        user_agent=user_agent,
    )

    gross = round2(payout.amount)
    send_notification(
        db,
        user_id=payout.mentor_id,
        type="payout_rejected",
        title="Payout Request Rejected",
        message=(
            f"Your withdrawal request for ${gross} was rejected. "
            f"Reason: {admin_notes or 'Not specified'}. Funds have been returned to your wallet."
        ),
        priority=NotificationPriority.HIGH,
        action_url="/mentor/wallet",
    )

    logger.info("Payout %s rejected by %s, %s refunded", payout.id, actor_id, gross)
    return payout
