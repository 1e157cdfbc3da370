"""

admin_log.py

관리자(Admin) 행위 기록(Audit Log) 모델 정의 파일.

이 파일은 관리자에 의해 수행된 주요 관리 행위
(멘토 승인/거절, 로그인 일시정지/해제, 출금 처리/완료/거절, 수익 기록)를
DB에 영구적으로 기록하기 위한 로그 테이블을 정의한다.

멘토 승인 상태 컬럼은 마지막 결정만 보관하므로,
이전 결정과 사유의 이력은 이 테이블이 보관한다.

설계 원칙:
- 실제 데이터 변경과 같은 트랜잭션에서 기록
- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계
- actor(행위자)와 target(대상 사용자 / 출금 요청)을 명확히 구분

"""

import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Enum as SAEnum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import utcnow
from app.db.base import Base
from app.db.types import UTCDateTime



#  관리자 행위 유형 Enum

class AdminAction(str, Enum):
    APPROVE_MENTOR = "APPROVE_MENTOR"
    REJECT_MENTOR = "REJECT_MENTOR"
    PAUSE_MENTOR_LOGIN = "PAUSE_MENTOR_LOGIN"
    RESUME_MENTOR_LOGIN = "RESUME_MENTOR_LOGIN"
    MARK_PAYOUT_PROCESSING = "MARK_PAYOUT_PROCESSING"
    COMPLETE_PAYOUT = "COMPLETE_PAYOUT"
    REJECT_PAYOUT = "REJECT_PAYOUT"
    RECORD_PAYMENT = "RECORD_PAYMENT"


"""
관리자 행위 로그 모델

- actor_id          : 행위를 수행한 관리자 ID
- target_user_id    : 행위 대상 사용자 ID (없을 수 있음)
- target_payout_id  : 대상 출금 요청 ID (출금 처리 시)
- action            : 수행된 관리자 행위 유형
- before_status     : 변경 전 상태
- after_status      : 변경 후 상태
- reason            : 거절 사유 / 관리자 메모
- ip                : 요청 IP 주소
- user_agent        : 요청 User-Agent
- created_at        : 행위 발생 시각 (UTC)

"""

class AdminActionLog(Base):
    __tablename__ = "admin_action_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    actor_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    target_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True)
    target_payout_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("payout_requests.id"), nullable=True)

    action: Mapped[AdminAction] = mapped_column(SAEnum(AdminAction, name="admin_action"), nullable=False)

    before_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    after_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
