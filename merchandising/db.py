from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from merchandising.settings import settings

engine = create_engine(settings.database_url, pool_pre_ping=True, echo=settings.database_echo)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
)


def get_session() -> Iterator[Session]:
    # 서비스 계층이 상태 전이와 상품 반영을 각각 commit 하므로 session.begin()으로 감싸지 않는다.
    with SessionLocal() as session:
        yield session
