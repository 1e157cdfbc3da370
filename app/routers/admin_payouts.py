"""
admin_payouts.py

관리자 출금 처리 / 수익 기록 API 모음.

주요 기능:
- 출금 요청 목록 조회 (상태 필터, 페이지네이션)
- 출금 요청 처리 중(processing) 표시
- 출금 완료 처리 (영수증 / 메모, total_withdrawn 증가)
- 출금 거절 처리 (총액 환불)
- 멘토 수익(Payment) 기록 / 상태 변경

설계 원칙:
- ADMIN 권한만 접근 가능
- 상태 전이 + 잔액 증감 + 관리자 로그는 같은 트랜잭션에서 commit
- completed / rejected 는 종료 상태 (다시 변경 불가)

관련 파일:
- app.services.wallet      : 출금 상태 전이 / 잔액 증감
- app.services.payments    : 수익 원장 기록

"""

import math
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_admin
from app.core.errors import DomainError
from app.models.user import User
from app.models.wallet import PayoutStatus
from app.schemas.admin import (
    CompletePayoutRequest,
    RejectPayoutRequest,
    PaymentCreateRequest,
    PaymentStatusUpdateRequest,
)
from app.schemas.wallet import PayoutRequestResponse, PaymentResponse
from app.services import payments as payment_service
from app.services import wallet as wallet_service
from app.services.admin_log import request_meta


router = APIRouter(prefix="/admin", tags=["admin-payouts"])


def _payout(payout) -> dict:
    return PayoutRequestResponse.model_validate(payout).model_dump(mode="json")


# 출금 요청 목록 조회 (최신순)
@router.get("/payouts")
def list_payouts(
    status: Optional[PayoutStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    rows, total = wallet_service.list_payouts(db, status=status, page=page, limit=limit)
    return {
        "data": [_payout(p) for p in rows],
        "meta": {
            "total": total,
            "page": page,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


@router.post("/payouts/{payout_id}/processing")
def mark_payout_processing(
    payout_id: uuid.UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    try:
        payout = wallet_service.mark_processing(
            db, payout_id=payout_id, actor_id=current_admin.id, **request_meta(request)
        )
        db.commit()
        db.refresh(payout)
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Payout marked as processing", "data": _payout(payout)}


"""
출금 완료 처리 API

- 이미 완료된 요청이면 AlreadyCompleted
- 거절된 요청은 완료 처리 불가
- 멘토 total_withdrawn 을 총액만큼 증가 (잔액은 요청 시 이미 차감)

"""

@router.post("/payouts/{payout_id}/complete")
def complete_payout(
    payout_id: uuid.UUID,
    data: CompletePayoutRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    try:
        payout = wallet_service.complete_payout(
            db,
            payout_id=payout_id,
            actor_id=current_admin.id,
            receipt_image=data.receipt_image,
            admin_notes=data.admin_notes,
            **request_meta(request),
        )
        db.commit()
        db.refresh(payout)
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Payout marked as completed successfully", "data": _payout(payout)}


"""
출금 거절 API

- pending / processing 상태만 거절 가능
- 총액 전액을 멘토 잔액으로 환불

"""

@router.post("/payouts/{payout_id}/reject")
def reject_payout(
    payout_id: uuid.UUID,
    data: RejectPayoutRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    try:
        payout = wallet_service.reject_payout(
            db,
            payout_id=payout_id,
            actor_id=current_admin.id,
            admin_notes=data.admin_notes,
            **request_meta(request),
        )
        db.commit()
        db.refresh(payout)
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Payout request rejected and funds refunded", "data": _payout(payout)}


# 멘토 수익 기록 (멘티 결제 1건)
@router.post("/payments", status_code=status.HTTP_201_CREATED)
def create_payment(
    data: PaymentCreateRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    try:
        payment = payment_service.record_payment(
            db,
            mentor_id=data.mentor_id,
            mentee_id=data.mentee_id,
            amount=data.amount,
            mentor_amount=data.mentor_amount,
            status=data.status,
            currency=data.currency,
            description=data.description,
            created_by=current_admin.id,
        )
        db.commit()
        db.refresh(payment)
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {
        "message": "Payment recorded",
        "data": PaymentResponse.model_validate(payment).model_dump(mode="json"),
    }


@router.patch("/payments/{payment_id}/status")
def update_payment_status(
    payment_id: uuid.UUID,
    data: PaymentStatusUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    try:
        payment = payment_service.set_payment_status(db, payment_id=payment_id, status=data.status)
        db.commit()
        db.refresh(payment)
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {
        "message": "Payment status updated",
        "data": PaymentResponse.model_validate(payment).model_dump(mode="json"),
    }
