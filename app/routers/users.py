"""
users.py

로그인한 사용자 본인 정보 API 모음.

이 파일은 로그인한 사용자(멘티 / 멘토 / 관리자)가
본인의 프로필을 조회 / 수정하고
본인에게 온 인앱 알림을 확인하기 위한 기능을 담당한다.

관리자용 멘토 관리 기능(admin.py)과 분리하여,
권한 범위와 노출 가능한 데이터 범위를 명확히 하기 위한 구조이다.

주요 기능:
- 본인 프로필 조회 / 수정
- 본인 알림 목록 조회 (최신순)
- 알림 읽음 처리

설계 원칙:
- 본인 데이터만 접근 가능 (다른 사용자의 알림 id 는 404)
- 이름은 필수, 전화번호 / 국가 / 시간대는 기본값("", "", "UTC")

관련 파일:
- app.models.user          : User 모델
- app.services.notifications : 알림 조회 / 읽음 처리
- app.core.deps            : 인증(get_current_user)
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_current_user, get_db
from app.core.errors import NotFound
from app.models.user import User
from app.schemas.user import UserResponse, ProfileUpdateRequest, NotificationResponse
from app.services.notifications import list_notifications, mark_read

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile")
def profile(current_user: User = Depends(get_current_user)):
    return {"data": UserResponse.model_validate(current_user).model_dump(mode="json")}


"""
본인 프로필 수정 API

- first_name / last_name 필수
- phone / country 는 생략 시 빈 문자열, timezone 은 생략 시 UTC
- avatar 는 주어진 경우에만 변경

"""
@router.patch("/profile")
def update_profile(
    data: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    current_user.first_name = data.first_name.strip()
    current_user.last_name = data.last_name.strip()
    current_user.phone = data.phone.strip()
    current_user.country = data.country.strip()
    current_user.timezone = data.timezone.strip() or "UTC"
    if data.avatar is not None:
        current_user.avatar = data.avatar

    try:
        db.commit()
        db.refresh(current_user)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {
        "message": "Profile updated",
        "data": UserResponse.model_validate(current_user).model_dump(mode="json"),
    }


@router.get("/notifications")
def notifications(
    limit: int = 50,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    limit = max(1, min(limit, 200))
    rows = list_notifications(db, current_user.id, limit=limit)
    return {
        "data": [NotificationResponse.model_validate(n).model_dump(mode="json") for n in rows],
        "meta": {
            "unread": sum(1 for n in rows if not n.is_read),
            "count": len(rows),
        },
    }


@router.post("/notifications/{notification_id}/read")
def read_notification(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    notification = mark_read(db, user_id=current_user.id, notification_id=notification_id)
    if not notification:
        raise NotFound("Notification not found")

    try:
        db.commit()
        db.refresh(notification)
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"data": NotificationResponse.model_validate(notification).model_dump(mode="json")}
