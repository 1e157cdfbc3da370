"""
main.py

FastAPI 애플리케이션 진입점(Entry Point).

이 파일은 서버 실행 시 가장 먼저 로드되며,
애플리케이션 전반의 설정과 라우터 등록을 담당한다.

주요 역할:
- 로깅 설정
- FastAPI 앱 인스턴스 생성 및 lifespan(만료 데이터 정리 루프) 관리
- 도메인 에러(DomainError) -> JSON 응답 변환
- CORS 미들웨어 설정
- 각 도메인별 라우터(auth, users, admin, wallet, admin_payouts) 등록
- 헬스 체크 및 DB 연결 상태 확인용 엔드포인트 제공

설계 원칙:
- 비즈니스 로직은 포함하지 않고 설정/조립 역할만 수행
- 실제 기능은 routers / services 계층에 위임
- 운영 환경에서도 안전하게 상태 확인 가능하도록 health/db-ping 제공

관련 파일:
- app.core.config        : 환경 변수 및 설정 로드
- app.core.errors        : 도메인 에러 정의
- app.services.purge     : 만료 데이터 정리
- app.routers.*          : 기능별 API 라우터

"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text

from app.core.config import settings
from app.core.deps import get_db
from app.core.errors import DomainError
from app.core.logging_config import configure_logging
from app.db.session import SessionLocal
from app.routers import auth, users, admin, wallet, admin_payouts
from app.services.purge import purge_expired

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def _purge_once() -> dict:
    db = SessionLocal()
    try:
        return purge_expired(db)
    finally:
        db.close()


async def _purge_loop(interval: int) -> None:
    while True:
        await asyncio.sleep(interval)
        try:
            counts = await asyncio.to_thread(_purge_once)
            if any(counts.values()):
                logger.info("Purged expired rows: %s", counts)
        except Exception:
            logger.exception("Expired data purge failed")


"""
애플리케이션 lifespan

- PURGE_INTERVAL_SECONDS > 0 이면 만료 데이터 정리 루프 시작
- 종료 시 루프 취소

"""
@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if settings.PURGE_INTERVAL_SECONDS > 0:
        task = asyncio.create_task(_purge_loop(settings.PURGE_INTERVAL_SECONDS))
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


app = FastAPI(title="Mentorship Marketplace Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 서비스 계층의 도메인 에러를 {"detail", "code"} 형태로 변환
@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(admin.router)
app.include_router(wallet.router)
app.include_router(admin_payouts.router)

"""
서버 헬스 체크 엔드포인트

- 애플리케이션 프로세스가 정상 동작 중인지 확인
- 로드밸런서 / 배포 환경에서 서버 상태 확인 용도

"""
@app.get("/health")
def health():
    return {"status": "ok"}

"""
데이터베이스 연결 상태 확인 엔드포인트

- 간단한 SELECT 1 쿼리를 통해 DB 연결 여부 확인
- 서버는 살아 있으나 DB가 죽은 상황을 분리해서 감지 가능

"""
@app.get("/db-ping")
def db_ping(db: Session = Depends(get_db)):
    value = db.execute(text("SELECT 1")).scalar_one()
    return {"db": "ok", "value": value}
