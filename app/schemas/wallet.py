import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from app.models.payment import PaymentStatus
from app.models.wallet import PayoutStatus


# 금액은 내부적으로 Decimal, JSON 응답에서는 숫자로 직렬화
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class PayoutMethodCreateRequest(BaseModel):
    type: str = Field(default="Bank Transfer", max_length=50)
    bank_name: str = Field(..., max_length=120)
    country: str = Field(..., max_length=100)
    account_number: str = Field(..., max_length=64)
    account_title: str = Field(..., max_length=120)
    is_default: bool = False


class PayoutMethodUpdateRequest(BaseModel):
    type: Optional[str] = Field(default=None, max_length=50)
    bank_name: Optional[str] = Field(default=None, max_length=120)
    country: Optional[str] = Field(default=None, max_length=100)
    account_number: Optional[str] = Field(default=None, max_length=64)
    account_title: Optional[str] = Field(default=None, max_length=120)
    is_default: Optional[bool] = None


class PayoutMethodResponse(BaseModel):
    id: uuid.UUID
    type: str
    bank_name: str
    country: str
    account_number: str
    account_title: str
    is_default: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WithdrawalRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2, examples=["100.00"])
    method_id: uuid.UUID


class PayoutRequestResponse(BaseModel):
    id: uuid.UUID
    mentor_id: uuid.UUID
    amount: Money
    platform_fee: Money
    net_amount: Money
    method_type: str
    method_bank_name: str
    method_country: str
    method_account_number: str
    method_account_title: str
    status: PayoutStatus
    receipt_image: Optional[str]
    admin_notes: Optional[str]
    processed_at: Optional[datetime]
    processed_by: Optional[uuid.UUID]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentResponse(BaseModel):
    id: uuid.UUID
    mentor_id: uuid.UUID
    mentee_id: Optional[uuid.UUID]
    amount: Money
    mentor_amount: Money
    platform_amount: Money
    currency: str
    status: PaymentStatus
    description: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class WalletBalance(BaseModel):
    available_balance: Money
    total_withdrawn: Money
    total_earnings: Money
    pending_earnings: Money


class WalletResponse(BaseModel):
    wallet: WalletBalance
    payout_methods: List[PayoutMethodResponse]
    payout_requests: List[PayoutRequestResponse]
    recent_earnings: List[PaymentResponse]
