import uuid
import datetime

from sqlalchemy import String, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.core.clock import utcnow
from app.db.base import Base
from app.db.types import UTCDateTime


class BlacklistedToken(Base):
    """로그아웃 / 로그인 일시정지로 무효화된 세션 토큰.

    - token: 토큰 문자열 (unique)
    - expires_at: 토큰 자체의 exp 를 그대로 복사. 지난 레코드는 정리 작업에서 삭제
    """

    __tablename__ = "blacklisted_tokens"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    token: Mapped[str] = mapped_column(String(1024), unique=True, index=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), index=True, nullable=False)

    expires_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    blacklisted_at: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
