import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.user import Role, AuthProvider, ApprovalStatus
from app.models.notification import NotificationPriority


# 🔹 유저 응답용 (비밀번호 / 인증 코드 제외)
class UserResponse(BaseModel):
    id: uuid.UUID
    email: str
    role: Role | None
    auth_provider: AuthProvider
    is_active: bool
    is_verified: bool
    mentor_approval_status: ApprovalStatus = Field(validation_alias="effective_approval_status")
    is_login_paused: bool
    first_name: str
    last_name: str
    avatar: str
    phone: str
    country: str
    timezone: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# 🔹 프로필 수정 요청 (이름 필수, 나머지는 기본값)
class ProfileUpdateRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str = Field(default="", max_length=30)
    country: str = Field(default="", max_length=100)
    timezone: str = Field(default="UTC", max_length=64)
    avatar: str | None = Field(default=None, max_length=500)


class NotificationResponse(BaseModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    priority: NotificationPriority
    action_url: str | None
    action_text: str | None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
