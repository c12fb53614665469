from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.middleware import install_query_counter


def build_engine(url: str, **kwargs) -> AsyncEngine:
    """Create an async engine with the per-request query counter attached."""
    engine = create_async_engine(url, **kwargs)
    install_query_counter(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Entities are copied out of rows after commit, so nothing needs a refresh.
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG, pool_pre_ping=True)
async_session = build_session_factory(engine)


class Base(DeclarativeBase):
    pass
