"""
admin.py

관리자(Admin) 멘토 관리 API 모음.

주요 기능:
- 멘토 목록 조회 (승인 상태 필터 / 이름·이메일·국가 검색)
- 멘토 상세 조회
- 멘토 승인 / 거절 (인앱 알림 + 결과 메일)
- 멘토 로그인 일시정지 / 해제
- 관리자 행위 로그 조회

설계 원칙:
- ADMIN 권한만 접근 가능
- 상태 변경과 관리자 로그는 같은 트랜잭션에서 commit
- 알림 / 메일 실패는 승인 처리 결과에 영향 없음

관련 파일:
- app.services.approval    : 승인 상태 머신 / 일시정지
- app.services.admin_log   : 관리자 행위 로그
- app.services.email       : 승인 결과 메일

"""

import uuid
from typing import Literal

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy import select, desc, func
from sqlalchemy.orm import Session, aliased

from app.core.deps import get_db, get_current_admin, get_email_client
from app.core.errors import DomainError
from app.models.admin_log import AdminActionLog
from app.models.user import User, ApprovalStatus
from app.models.wallet import PayoutRequest
from app.schemas.admin import ApprovalUpdateRequest, LoginPauseRequest
from app.services.admin_log import request_meta
from app.services.approval import list_mentors, set_approval_status, set_login_pause
from app.services.email import EmailClient, deliver_approval_decision
from app.services.identity import get_mentor


router = APIRouter(prefix="/admin", tags=["admin"])


def _mentor_summary(mentor: User) -> dict:
    return {
        "id": str(mentor.id),
        "name": mentor.full_name,
        "email": mentor.email,
        "country": mentor.country or "N/A",
        "verified": mentor.is_verified,
        "status": mentor.effective_approval_status.value,
        "paused": mentor.is_login_paused,
        "created_at": mentor.created_at.isoformat(),
    }


# 멘토 목록 조회 엔드포인트 (status=approved 는 구버전 멘토 포함)
@router.get("/mentors")
def get_mentors(
    status: Literal["all", "pending", "approved", "rejected"] = "all",
    search: str = "",
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    mentors = list_mentors(db, status=status, search=search)
    return {
        "data": [_mentor_summary(m) for m in mentors],
        "meta": {"total": len(mentors)},
    }


# 멘토 상세 조회 엔드포인트
@router.get("/mentors/{mentor_id}")
def get_mentor_detail(
    mentor_id: uuid.UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    mentor = get_mentor(db, mentor_id)
    payouts = db.scalar(select(func.count()).select_from(PayoutRequest).where(PayoutRequest.mentor_id == mentor.id))

    data = _mentor_summary(mentor)
    data.update(
        {
            "first_name": mentor.first_name,
            "last_name": mentor.last_name,
            "phone": mentor.phone or "N/A",
            "timezone": mentor.timezone,
            "is_active": mentor.is_active,
            "payout_requests_count": payouts or 0,
        }
    )
    return {"data": data}


"""
멘토 승인 / 거절 API

- status 는 approved / rejected 만 허용
- 거절 사유(reason)는 알림 / 메일 / 관리자 로그에 기록
- 결과 메일은 응답 이후 BackgroundTasks 로 발송

"""

@router.patch("/mentors/{mentor_id}/approval")
def update_mentor_approval(
    mentor_id: uuid.UUID,
    data: ApprovalUpdateRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
    email_client: EmailClient = Depends(get_email_client),
):
    try:
        mentor = set_approval_status(
            db,
            mentor_id=mentor_id,
            status=data.status,
            reason=data.reason,
            actor_id=current_admin.id,
            **request_meta(request),
        )
        db.commit()
        db.refresh(mentor)
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    approved = mentor.mentor_approval_status == ApprovalStatus.APPROVED
    background_tasks.add_task(
        deliver_approval_decision, email_client, mentor.email, mentor.full_name, approved, data.reason
    )

    return {
        "message": f"Mentor {mentor.mentor_approval_status.value} successfully",
        "data": {
            "id": str(mentor.id),
            "status": mentor.mentor_approval_status.value,
        },
    }


"""
멘토 로그인 일시정지 / 해제 API

- 승인 상태와 독립
- 일시정지 즉시 기존 토큰은 다음 요청에서 블랙리스트 처리되어 거부됨

"""

@router.patch("/mentors/{mentor_id}/pause")
def update_mentor_pause(
    mentor_id: uuid.UUID,
    data: LoginPauseRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    try:
        mentor = set_login_pause(
            db,
            mentor_id=mentor_id,
            paused=data.is_paused,
            actor_id=current_admin.id,
            **request_meta(request),
        )
        db.commit()
        db.refresh(mentor)
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {
        "message": f"Mentor login {'paused' if mentor.is_login_paused else 'unpaused'} successfully",
        "data": {
            "id": str(mentor.id),
            "is_login_paused": mentor.is_login_paused,
        },
    }


# 관리자 활동 로그 조회 엔드포인트
@router.get("/logs")
def list_admin_logs(
    limit: int = 50,
    target_user_id: uuid.UUID | None = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_admin),
):
    limit = max(1, min(limit, 200))

    Actor = aliased(User)
    Target = aliased(User)

    stmt = (
        select(AdminActionLog, Actor, Target)
        .join(Actor, Actor.id == AdminActionLog.actor_id)
        .outerjoin(Target, Target.id == AdminActionLog.target_user_id)
        .order_by(desc(AdminActionLog.created_at))
        .limit(limit)
    )
    if target_user_id is not None:
        stmt = stmt.where(AdminActionLog.target_user_id == target_user_id)

    result = []
    for log, actor, target in db.execute(stmt).all():
        result.append(
            {
                "id": str(log.id),
                "created_at": log.created_at.isoformat(),
                "action": log.action.value,
                "before_status": log.before_status,
                "after_status": log.after_status,
                "reason": log.reason,
                "target_payout_id": str(log.target_payout_id) if log.target_payout_id else None,
                "actor": {
                    "id": str(actor.id),
                    "email": actor.email,
                    "name": actor.full_name,
                },
                "target": (
                    {
                        "id": str(target.id),
                        "email": target.email,
                        "name": target.full_name,
                        "role": target.role.value if target.role else None,
                    }
                    if target
                    else None
                ),
            }
        )
    return {
        "data": result,
        "meta": {
            "limit": limit,
            "count": len(result),
        },
    }
