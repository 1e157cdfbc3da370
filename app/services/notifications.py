"""
services/notifications.py

인앱 알림(Notification) 발송 서비스.

이 파일은 승인 결과, 로그인 일시정지, 출금 처리 결과 등을
사용자에게 알리는 Notification 레코드를 생성한다.

알림은 주 작업(승인, 출금 처리 등)의 부수 효과이므로
알림 저장에 실패해도 주 작업은 그대로 커밋되어야 한다.

설계 원칙:
- 알림 INSERT 는 SAVEPOINT(begin_nested) 안에서 수행
- 실패 시 SAVEPOINT 만 롤백하고 로그를 남긴 뒤 None 반환
- db.commit()은 호출 측(라우터)에서 수행

관련 파일:
- app.models.notification : Notification / NotificationPriority
- app.routers.users       : 본인 알림 조회 / 읽음 처리

"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.notification import Notification, NotificationPriority
from app.models.user import User, Role


logger = logging.getLogger(__name__)


def send_notification(
    db: Session,
    *,
    user_id: uuid.UUID,
    type: str,
    title: str,
    message: str,
    priority: NotificationPriority = NotificationPriority.MEDIUM,
    action_url: str | None = None,
    action_text: str | None = None,
) -> Notification | None:
    try:
        with db.begin_nested():
            notification = Notification(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                priority=priority,
                action_url=action_url,
                action_text=action_text,
            )
            db.add(notification)
        return notification
    except Exception:
        logger.exception("Failed to store notification type=%s user_id=%s", type, user_id)
        return None


# 활성 관리자 전원에게 같은 알림 발송 (신규 멘토 가입 요청 등)
def notify_admins(db: Session, **payload) -> int:
    admins = db.scalars(select(User).where(User.role == Role.ADMIN, User.is_active.is_(True))).all()
    sent = 0
    for admin in admins:
        if send_notification(db, user_id=admin.id, **payload) is not None:
            sent += 1
    return sent


def list_notifications(db: Session, user_id: uuid.UUID, limit: int = 50) -> list[Notification]:
    return db.scalars(
        select(Notification)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    ).all()


def mark_read(db: Session, *, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification | None:
    notification = db.scalar(
        select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    if notification:
        notification.is_read = True
    return notification
