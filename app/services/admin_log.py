"""
services/admin_log.py

관리자 행위 로그 기록 서비스.

이 파일은 관리자(Admin)가 수행한 주요 행위
(멘토 승인/거절, 로그인 일시정지, 출금 처리, 수익 기록)를
AdminActionLog 테이블에 기록하는 역할을 담당한다.

멘토 승인 상태 컬럼은 마지막 결정만 보관하므로
이전 결정과 사유는 이 로그로 추적한다.

설계 원칙:
- 실제 변경과 같은 트랜잭션에서 기록 (변경이 롤백되면 로그도 롤백)
- 로그 데이터는 수정/삭제하지 않는 것을 전제로 설계

"""

from fastapi import Request
from sqlalchemy.orm import Session

from app.models.admin_log import AdminActionLog, AdminAction


"""
관리자 행위 로그 기록 함수

- actor_id         : 행위를 수행한 관리자 ID
- action           : 수행된 관리자 행위 유형
- target_user_id   : 행위 대상 사용자 ID (선택)
- target_payout_id : 대상 출금 요청 ID (선택)
- before_status    : 변경 전 상태 (선택)
- after_status     : 변경 후 상태 (선택)
- reason           : 거절 사유 / 관리자 메모 (선택)
- ip / user_agent  : 요청 정보 (선택)

NOTE:
- db.commit()은 호출 측(라우터)에서 수행

"""
def write_admin_log(
    db: Session,
    *,
    actor_id,
    action: AdminAction,
    target_user_id=None,
    target_payout_id=None,
    before_status=None,
    after_status=None,
    reason=None,
    ip=None,
    user_agent=None,
) -> AdminActionLog:
    log = AdminActionLog(
        actor_id=actor_id,
        action=action,
        target_user_id=target_user_id,
        target_payout_id=target_payout_id,
        before_status=before_status,
        after_status=after_status,
        reason=reason,
        ip=ip,
        user_agent=user_agent,
    )
    db.add(log)
    return log


# 요청 객체에서 IP / User-Agent 추출 (로그 기록용)
def request_meta(request: Request | None) -> dict:
    if request is None:
        return {"ip": None, "user_agent": None}
    return {
        "ip": request.client.host if request.client else None,
        "user_agent": (request.headers.get("user-agent") or "")[:255] or None,
    }

