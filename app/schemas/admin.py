import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, StrictBool

from app.models.payment import PaymentStatus


# 🔹 멘토 승인 / 거절 요청 (status 값 검증은 서비스에서 InvalidStatus 로 처리)
class ApprovalUpdateRequest(BaseModel):
    status: str
    reason: Optional[str] = Field(default=None, max_length=1000)


class LoginPauseRequest(BaseModel):
    is_paused: StrictBool


class CompletePayoutRequest(BaseModel):
    receipt_image: Optional[str] = Field(default=None, max_length=500)
    admin_notes: Optional[str] = None


class RejectPayoutRequest(BaseModel):
    admin_notes: Optional[str] = None


class PaymentCreateRequest(BaseModel):
    mentor_id: uuid.UUID
    mentee_id: Optional[uuid.UUID] = None
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    mentor_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: PaymentStatus = PaymentStatus.SUCCEEDED
    currency: str = Field(default="usd", min_length=3, max_length=3)
    description: Optional[str] = Field(default=None, max_length=255)


class PaymentStatusUpdateRequest(BaseModel):
    status: PaymentStatus

