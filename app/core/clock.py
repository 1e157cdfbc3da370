from datetime import datetime, timezone


# 만료 비교에 사용하는 단일 시각 소스 (항상 UTC aware)
def utcnow() -> datetime:
    return datetime.now(timezone.utc)
