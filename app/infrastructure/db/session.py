# app/infrastructure/db/session.py
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config.settings import settings
from sqlalchemy import text

Base = declarative_base()


def build_engine(url: str = None, **kwargs):
    url = url or settings.DATABASE_URL
    if url.startswith("postgresql"):
        kwargs.setdefault("pool_pre_ping", True)   # validates connections
        kwargs.setdefault("pool_recycle", 300)     # kills idle connections
        kwargs.setdefault("pool_size", 10)
        kwargs.setdefault("max_overflow", 20)
    return create_async_engine(url, echo=False, future=True, **kwargs)


engine = build_engine()

# Async session factory
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Async context manager for a session
async def get_async_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        # health check before yield
        await session.execute(text("SELECT 1"))
        yield session


async def create_tables(bind=None):
    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
