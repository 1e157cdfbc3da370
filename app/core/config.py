"""
config.py

애플리케이션 전역 설정(Configuration) 관리 파일.

이 파일은 .env 환경 변수들을 Pydantic BaseSettings를 통해 로드하여
애플리케이션 전반에서 공통으로 사용하는 설정 값을 제공한다.

주요 설정 항목:
- 데이터베이스 연결 정보
- JWT 인증 관련 시크릿 및 만료 정책
- 멘토 승인(verification) 기능 플래그
- 출금(payout) 최소 금액 / 플랫폼 수수료율
- SMTP 이메일 발송 설정
- CORS 허용 도메인 목록

설계 원칙:
- 모든 환경 변수는 이 파일을 통해서만 접근
- 로컬 / 테스트 / 운영 환경을 .env로 분리하여 관리
- 설정 값은 런타임 중 변경되지 않는 불변 객체로 취급

관련 파일:
- app.main               : CORS / 로깅 / 만료 데이터 정리 주기
- app.core.security      : JWT 시크릿 / 만료 설정 사용
- app.db.session         : DATABASE_URL 사용
- app.services.wallet    : 최소 출금액 / 수수료율 사용
- app.services.email     : SMTP 설정 사용

"""

from decimal import Decimal
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


# .env 파일에 정의된 환경 변수를 로드하는 설정 클래스
# extra="ignore" 옵션으로 정의되지 않은 환경 변수는 무시
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    DATABASE_URL: str
    TEST_DATABASE_URL: str | None = None

    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    # 세션 토큰 만료 (기본 7일)
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    LOG_LEVEL: str = "INFO"

    # False 이면 신규 멘토는 가입 시점에 바로 approved 로 지정된다
    ENABLE_MENTOR_VERIFICATION: bool = True

    MIN_WITHDRAWAL_AMOUNT: Decimal = Decimal("50")
    PLATFORM_FEE_RATE: Decimal = Decimal("0.20")
    PAYOUT_HISTORY_LIMIT: int = 20

    # 만료 데이터(가입 대기, 재설정 코드, 블랙리스트 토큰) 정리 주기. 0 이면 비활성화
    PURGE_INTERVAL_SECONDS: int = 300

    # SMTP (Gmail, Hostinger 등)
    EMAIL_HOST: str = "smtp.hostinger.com"
    EMAIL_PORT: int = 587
    EMAIL_USER: str | None = None
    EMAIL_PASS: str | None = None
    EMAIL_FROM: str | None = None
    EMAIL_TIMEOUT_SECONDS: int = 10

    # 최초 관리자 계정 생성 스크립트용
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None

    # CORS 허용 도메인 (프론트엔드 주소)
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]


# 애플리케이션 전역에서 import하여 사용하는 Settings 인스턴스
# 실행 시 한 번만 생성됨
settings = Settings()
