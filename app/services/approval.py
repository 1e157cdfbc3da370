"""
services/approval.py

멘토 승인(Approval) 상태 머신 및 로그인 허용 판단 로직.

멘토 계정은 이메일 인증과는 별개로 관리자 승인을 거쳐야 로그인할 수 있다.
관리자는 approved / rejected 를 언제든 다시 바꿀 수 있으며,
승인 상태와 독립적으로 로그인 일시정지(pause)를 걸 수 있다.

상태:
- pending  -> approved | rejected
- approved <-> rejected (재심사 허용, 이력은 관리자 로그에 보관)
- NULL     : 승인 기능 도입 이전 멘토, approved 로 취급

로그인 허용 순서 (하나라도 실패하면 즉시 해당 에러):
1) 계정 활성화 여부       -> AccountDeactivated
2) 멘토 승인 상태         -> ApprovalPending / ApprovalRejected
3) 로그인 일시정지 여부   -> LoginPaused
4) 비밀번호               -> InvalidCredentials

관련 파일:
- app.routers.admin       : 멘토 목록 / 승인 / 일시정지 API
- app.routers.auth        : 로그인 API
- app.core.deps           : 요청마다 승인 / 일시정지 재확인

"""

import logging
import uuid

from sqlalchemy import select, or_
from sqlalchemy.orm import Session

from app.core.errors import (
    AccountDeactivated,
    ApprovalPending,
    ApprovalRejected,
    InvalidCredentials,
    InvalidStatus,
    LoginPaused,
    NotVerified,
)
from app.models.admin_log import AdminAction
from app.models.notification import NotificationPriority
from app.models.user import User, Role, ApprovalStatus
from app.services.admin_log import write_admin_log
from app.services.identity import check_password, get_mentor
from app.services.notifications import send_notification


logger = logging.getLogger(__name__)


DECIDABLE_STATUSES = (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED)


def parse_decision(status: str) -> ApprovalStatus:
    try:
        decision = ApprovalStatus(status)
    except ValueError:
        raise InvalidStatus()
    if decision not in DECIDABLE_STATUSES:
        raise InvalidStatus()
    return decision


# 승인 / 일시정지 판단 (로그인과 인증 의존성에서 공통 사용)
def ensure_mentor_can_sign_in(user: User) -> None:
    if user.role != Role.MENTOR:
        return
    status = user.effective_approval_status
    if status == ApprovalStatus.PENDING:
        raise ApprovalPending()
    if status == ApprovalStatus.REJECTED:
        raise ApprovalRejected()
    if user.is_login_paused:
        raise LoginPaused()


"""
로그인 허용 판단

- user 가 None 이면 InvalidCredentials (존재 여부 노출 안 함)
- 활성화 -> 승인 -> 일시정지 -> 비밀번호 순서
- 비밀번호가 맞아도 이메일 미인증이면 NotVerified

"""

def check_login_admission(user: User | None, password: str) -> User:
    if user is None:
        raise InvalidCredentials()
    if not user.is_active:
        raise AccountDeactivated()

    ensure_mentor_can_sign_in(user)

    if not check_password(user, password):
        raise InvalidCredentials()
    if not user.is_verified:
        raise NotVerified()
    return user


"""
멘토 승인 / 거절

- status 는 approved / rejected 만 허용 (그 외 InvalidStatus)
- 멘토가 아니거나 없으면 NotFound
- 결정과 사유는 관리자 로그에 남김 (이전 결정 이력 보존)
- 멘토에게 인앱 알림 발송 (실패해도 승인 처리는 유지)
- 이메일 발송은 라우터에서 BackgroundTasks 로 처리

"""

def set_approval_status(
    db: Session,
    *,
    mentor_id: uuid.UUID,
    status: str,
    reason: str | None = None,
    actor_id: uuid.UUID,
    ip: str | None = None,
    user_agent: str | None = None,
) -> User:
    decision = parse_decision(status)
    mentor = get_mentor(db, mentor_id)

    before = mentor.mentor_approval_status
    mentor.mentor_approval_status = decision

    approved = decision == ApprovalStatus.APPROVED
    write_admin_log(
        db,
        actor_id=actor_id,
        action=AdminAction.APPROVE_MENTOR if approved else AdminAction.REJECT_MENTOR,
        target_user_id=mentor.id,
        before_status=before.value if before else None,
        after_status=decision.value,
        reason=reason,
        ip=ip,
        user_agent=user_agent,
    )

    if approved:
        message = (
            "Congratulations! Your mentor account has been approved. "
            "You can now log in and start offering your services."
        )
    elif reason:
        message = f"Your mentor account has been rejected. Reason: {reason}"
    else:
        message = "Your mentor account has been rejected. Please contact support for more information."

    send_notification(
        db,
        user_id=mentor.id,
        type="mentor_approved" if approved else "mentor_rejected",
        title="Account Approved" if approved else "Account Rejected",
        message=message,
        priority=NotificationPriority.HIGH,
        action_url="/mentors/login" if approved else "/contact",
        action_text="Login Now" if approved else "Contact Support",
    )

    logger.info("Mentor %s approval status %s -> %s", mentor.id, before, decision.value)
    return mentor


"""
멘토 로그인 일시정지 / 해제

- 승인 상태와 독립적으로 동작
- 현재 사용 중인 토큰은 다음 요청 시 인증 의존성에서 블랙리스트 처리
- 멘토에게 인앱 알림 발송

"""

def set_login_pause(
    db: Session,
    *,
    mentor_id: uuid.UUID,
    paused: bool,
    actor_id: uuid.UUID,
    ip: str | None = None,
    user_agent: str | None = None,
) -> User:
    mentor = get_mentor(db, mentor_id)

    before = mentor.is_login_paused
    mentor.is_login_paused = paused

    write_admin_log(
        db,
        actor_id=actor_id,
        action=AdminAction.PAUSE_MENTOR_LOGIN if paused else AdminAction.RESUME_MENTOR_LOGIN,
        target_user_id=mentor.id,
        before_status="paused" if before else "active",
        after_status="paused" if paused else "active",
        ip=ip,
        user_agent=user_agent,
    )

    send_notification(
        db,
        user_id=mentor.id,
        type="mentor_login_paused",
        title="Login Access Paused" if paused else "Login Access Restored",
        message=(
            "Your login access has been paused by admin. Please contact support for more information."
            if paused
            else "Your login access has been restored. You can now log in to your account."
        ),
        priority=NotificationPriority.HIGH,
        action_url="/contact",
        action_text="Contact Support",
    )

    logger.info("Mentor %s login %s", mentor.id, "paused" if paused else "resumed")
    return mentor


"""
멘토 목록 조회 (관리자)

- 활성 멘토만 대상, 최신 가입순
- status=approved 는 NULL(구버전 멘토) 포함
- search 는 이름 / 이메일 / 국가 부분 일치 (대소문자 무시)

"""

def list_mentors(db: Session, *, status: str = "all", search: str = "") -> list[User]:
    stmt = select(User).where(User.role == Role.MENTOR, User.is_active.is_(True))

    if status != "all":
        wanted = ApprovalStatus(status)
        if wanted == ApprovalStatus.APPROVED:
            stmt = stmt.where(
                or_(
                    User.mentor_approval_status == ApprovalStatus.APPROVED,
                    User.mentor_approval_status.is_(None),
                )
            )
        else:
            stmt = stmt.where(User.mentor_approval_status == wanted)

    search = search.strip()
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
                User.country.ilike(pattern),
            )
        )

    return db.scalars(stmt.order_by(User.created_at.desc())).all()
