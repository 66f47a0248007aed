"""Pytest configuration and fixtures."""

import asyncio
from typing import List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from merchandising.models import Base, Product
from merchandising.services.ai.base import AIProvider
from merchandising.services.ai.gateway import ModelGateway


# 테스트용 메모리 SQLite 엔진 (TestClient 스레드에서도 같은 DB를 보도록 StaticPool)
TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False  # 테스트 로그 줄이기
)

TestSessionLocal = sessionmaker(
    bind=test_engine,
    autoflush=False,
    expire_on_commit=False,
)


@pytest.fixture(scope="function")
def test_session() -> Session:
    """
    테스트용 데이터베이스 세션 fixture.
    각 테스트마다 테이블을 새로 생성.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def db_session(test_session: Session):
    """test_session alias"""
    yield test_session


class FakeProvider(AIProvider):
    """
    모델 호출을 기록하고 미리 정한 응답을 돌려주는 테스트용 제공자.
    """
    name = "fake"
    model_name = "fake-model"

    def __init__(self, responses=None, error: Optional[Exception] = None, delay: float = 0.0, configured: bool = True):
        if isinstance(responses, str):
            responses = [responses]
        self.responses: List[str] = list(responses or [])
        self.error = error
        self.delay = delay
        self.configured = configured
        self.calls: list = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def _reply(self) -> str:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0] if self.responses else ""

    async def generate_text(self, prompt, model=None):
        self.calls.append({"prompt": prompt, "messages": None, "system_context": None})
        return await self._reply()

    async def chat(self, messages, system_context=None, model=None):
        self.calls.append({"prompt": None, "messages": list(messages), "system_context": system_context})
        return await self._reply()


@pytest.fixture
def make_gateway():
    """
    FakeProvider 를 감싼 실제 ModelGateway 생성기.
    사용: gateway, provider = make_gateway('{"a": 1}')
    """
    def _make(responses=None, error=None, delay=0.0, configured=True, timeout=5.0):
        provider = FakeProvider(responses, error=error, delay=delay, configured=configured)
        return ModelGateway(provider, timeout=timeout), provider
    return _make


@pytest.fixture
def make_product(test_session: Session):
    """상품 생성 헬퍼"""
    def _make(**kwargs) -> Product:
        values = {
            "name": "Test Product",
            "description": "A test product",
            "price": 1000.0,
            "stock": 10,
            "category": "Fashion",
            "seller_id": 1,
            "approved": True,
        }
        values.update(kwargs)
        product = Product(**values)
        test_session.add(product)
        test_session.commit()
        return product
    return _make


# 테스트 마커 정의
def pytest_configure(config):
    """Pytest 마커 등록."""
    config.addinivalue_line("markers", "unit: 단위 테스트 (DB 불필요)")
    config.addinivalue_line("markers", "integration: 통합 테스트 (DB/API 필요)")
    config.addinivalue_line("markers", "slow: 느린 테스트 (> 1분)")
