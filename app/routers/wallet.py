"""
wallet.py

멘토 지갑(Wallet) API 모음.

주요 기능:
- 지갑 조회 (원장 기준 잔액 재계산 + 출금 수단 + 최근 출금 요청 / 수익)
- 출금 수단 추가 / 수정 / 삭제
- 출금 요청 (총액 잠금, 수수료 20%)

설계 원칙:
- MENTOR 권한만 접근 가능, 본인 지갑만 조작
- 출금 요청은 잠금 + 요청 생성을 한 번의 commit 으로 처리 (실패 시 전체 rollback)

관련 파일:
- app.services.wallet      : 잔액 계산 / 출금 로직
- app.schemas.wallet       : 요청 / 응답 스키마

"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.deps import get_db, get_current_mentor
from app.core.errors import DomainError
from app.models.user import User
from app.schemas.wallet import (
    PayoutMethodCreateRequest,
    PayoutMethodUpdateRequest,
    PayoutMethodResponse,
    PayoutRequestResponse,
    PaymentResponse,
    WalletBalance,
    WalletResponse,
    WithdrawalRequest,
)
from app.services import wallet as wallet_service


router = APIRouter(prefix="/mentor/wallet", tags=["wallet"])


def _methods(methods) -> list[dict]:
    return [PayoutMethodResponse.model_validate(m).model_dump(mode="json") for m in methods]


"""
지갑 조회 API

- 조회할 때마다 수익 / 출금 이력으로 잔액을 다시 계산
- 캐시 값이 달라졌을 때만 저장

"""

@router.get("")
def get_wallet(
    db: Session = Depends(get_db),
    mentor: User = Depends(get_current_mentor),
):
    try:
        view = wallet_service.get_wallet(db, mentor.id)
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    body = WalletResponse(
        wallet=WalletBalance(
            available_balance=view.available_balance,
            total_withdrawn=view.total_withdrawn,
            total_earnings=view.total_earnings,
            pending_earnings=view.pending_earnings,
        ),
        payout_methods=[PayoutMethodResponse.model_validate(m) for m in view.payout_methods],
        payout_requests=[PayoutRequestResponse.model_validate(p) for p in view.payout_requests],
        recent_earnings=[PaymentResponse.model_validate(p) for p in view.recent_earnings],
    )
    return {"message": "Wallet data retrieved", "data": body.model_dump(mode="json")}


@router.post("/payout-methods", status_code=status.HTTP_201_CREATED)
def add_payout_method(
    data: PayoutMethodCreateRequest,
    db: Session = Depends(get_db),
    mentor: User = Depends(get_current_mentor),
):
    try:
        methods = wallet_service.add_payout_method(db, mentor_id=mentor.id, **data.model_dump())
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Payout method added", "data": _methods(methods)}


@router.patch("/payout-methods/{method_id}")
def update_payout_method(
    method_id: uuid.UUID,
    data: PayoutMethodUpdateRequest,
    db: Session = Depends(get_db),
    mentor: User = Depends(get_current_mentor),
):
    try:
        methods = wallet_service.update_payout_method(
            db, mentor_id=mentor.id, method_id=method_id, **data.model_dump(exclude_unset=True)
        )
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Payout method updated", "data": _methods(methods)}


@router.delete("/payout-methods/{method_id}")
def delete_payout_method(
    method_id: uuid.UUID,
    db: Session = Depends(get_db),
    mentor: User = Depends(get_current_mentor),
):
    try:
        methods = wallet_service.delete_payout_method(db, mentor_id=mentor.id, method_id=method_id)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Payout method removed", "data": _methods(methods)}


"""
출금 요청 API

- 최소 출금액 / 본인 출금 수단 / 잔액 순서로 확인
- 성공 시 총액이 잔액에서 잠기고 pending 상태의 요청 생성

"""

@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
def request_withdrawal(
    data: WithdrawalRequest,
    db: Session = Depends(get_db),
    mentor: User = Depends(get_current_mentor),
):
    try:
        payout = wallet_service.request_withdrawal(
            db, mentor_id=mentor.id, amount=data.amount, method_id=data.method_id
        )
        db.commit()
        db.refresh(payout)
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {
        "message": "Withdrawal request submitted successfully",
        "data": PayoutRequestResponse.model_validate(payout).model_dump(mode="json"),
    }
