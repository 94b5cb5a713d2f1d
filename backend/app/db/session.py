"""
Database engine, session factory and declarative base.

PostgreSQL via asyncpg in deployment. A `sqlite+aiosqlite` URL is accepted
for local runs; SQLite gets no pool sizing and has foreign keys switched on
per connection so ON DELETE rules behave the same as on PostgreSQL.
"""

from datetime import datetime, timezone
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from backend.app.core.config import settings


def _engine_options(url: str) -> dict:
    options = {"echo": settings.db_echo}
    if make_url(url).get_backend_name() == "sqlite":
        return options
    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

if engine.dialect.name == "sqlite":
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

# Objects stay readable after commit; services return them to the endpoints
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """
    FastAPI dependency yielding one session per request.

    Services commit explicitly. Whatever is still pending when the request
    raises is rolled back here.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def utcnow() -> datetime:
    """Timezone-aware 'now' used for Python-side column defaults."""
    return datetime.now(timezone.utc)
