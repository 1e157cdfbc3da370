"""
logging_config.py

애플리케이션 로깅 초기화.

- 서버 시작 시 한 번만 호출
- 각 모듈은 logging.getLogger(__name__) 으로 로거를 얻어 사용

"""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if any(getattr(h, "_marketplace", False) for h in root.handlers):
        root.setLevel(level.upper())
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._marketplace = True  # 중복 등록 방지 표식
    root.addHandler(handler)
    root.setLevel(level.upper())

    # SQL echo 는 별도 설정이 없으면 숨김
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
