import os

# app import 전에 테스트용 기본 환경 변수 지정 (.env 가 없어도 실행 가능)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("PURGE_INTERVAL_SECONDS", "0")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app as fastapi_app
from app.core.config import settings
from app.core.deps import get_db, get_email_client
from app.db.base import Base
from app.services.email import EmailResult

# ✅ 모델 import (Base.metadata에 테이블 등록)
import app.models  # noqa: F401


TEST_DB_URL = settings.TEST_DATABASE_URL or os.getenv("TEST_DATABASE_URL") or "sqlite://"

if TEST_DB_URL.startswith("sqlite"):
    # in-memory SQLite 는 연결 1개를 모든 세션이 공유해야 같은 DB 를 봄
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
else:
    engine = create_engine(TEST_DB_URL, pool_pre_ping=True)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeEmailClient:
    """발송 대신 기록만 하는 이메일 클라이언트"""

    def __init__(self):
        self.codes = []
        self.decisions = []

    def send_code(self, email, code, kind="verification"):
        self.codes.append({"email": email, "code": code, "kind": kind})
        return EmailResult(success=True, message_id=f"fake-{len(self.codes)}")

    def send_approval_decision(self, email, name, approved, reason=None):
        self.decisions.append({"email": email, "name": name, "approved": approved, "reason": reason})
        return EmailResult(success=True, message_id=f"fake-decision-{len(self.decisions)}")

    def last_code(self, email, kind="verification"):
        for sent in reversed(self.codes):
            if sent["email"] == email and sent["kind"] == kind:
                return sent["code"]
        return None


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """테스트 전체 시작/종료 때만 스키마 생성/삭제"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables():
    """각 테스트마다 데이터 초기화 (테이블은 유지, row만 삭제)"""
    with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db_session():
    """테스트에서 직접 DB 조작할 때 쓰는 세션"""
    session = TestingSessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def outbox():
    return FakeEmailClient()


@pytest.fixture()
def client(outbox):
    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_email_client] = lambda: outbox
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()
