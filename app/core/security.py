"""
security.py

비밀번호 해싱 및 JWT 세션 토큰 생성/검증을 담당하는 보안 유틸리티 모음.

이 파일은 인증(auth) 로직에서 사용하는
저수준(low-level) 보안 기능만을 제공하며,
라우터나 비즈니스 로직은 포함하지 않는다.

주요 기능:
- 비밀번호 해싱 및 검증 (bcrypt)
- OTP 숫자 코드 생성
- JWT Access Token 생성 / 디코딩
- 토큰 만료 시각 추출 (블랙리스트 보관 기한 계산용)

설계 원칙:
- 계정마다 랜덤 salt (bcrypt 기본 동작)
- 비교는 항상 해시 기준 상수 시간 비교, 평문 비교 금지
- 같은 초에 발급된 토큰도 서로 다르도록 jti 포함
- 시간 기반(exp) 만료는 UTC 기준으로 처리

관련 파일:
- app.core.config        : JWT 시크릿 키 및 만료 설정
- app.core.deps          : 토큰을 실제로 검증하는 인증 의존성
- app.routers.auth       : 로그인 / 로그아웃 API

"""

import secrets
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import settings


# bcrypt 기반 비밀번호 해싱 컨텍스트
# deprecated="auto"로 향후 알고리즘 교체 가능하도록 설정

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


"""
숫자 OTP 생성 함수

- digits 자리 수의 숫자 문자열 (첫 자리 0 없음)
- 가입 인증은 6자리, 비밀번호 재설정은 4자리 사용

"""

def generate_numeric_code(digits: int) -> str:
    low = 10 ** (digits - 1)
    return str(low + secrets.randbelow(9 * low))


"""
Access Token 생성 함수

- subject(sub): 사용자 식별자(user_id)
- role: 클라이언트 라우팅 용도 (권한 판단은 항상 DB 기준)
- jti: 토큰 고유값 (블랙리스트 단위)
- Authorization Header(Bearer)에 담겨 전달됨

"""

def create_access_token(subject: str, role: str | None = None, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": subject,
        "role": role,
        "type": "access",
        "jti": uuid.uuid4().hex,
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


"""
Access Token 디코딩 및 검증 함수

- 서명 / 만료 / 토큰 타입(access) 확인
- 유효하지 않을 경우 JWTError 발생

"""

def decode_access_token(token: str) -> dict:
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    if payload.get("type") != "access":
        raise JWTError("Not an access token")
    if not payload.get("sub"):
        raise JWTError("Missing subject")
    return payload


# 토큰 자체의 exp 를 블랙리스트 만료 시각으로 사용 (exp 가 없으면 기본 만료 기간)
def token_expires_at(payload: dict) -> datetime:
    exp = payload.get("exp")
    if exp is None:
        return datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return datetime.fromtimestamp(int(exp), tz=timezone.utc)
