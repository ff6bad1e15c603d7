from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings

# Executed on every new SQLite connection.
# case_sensitive_like aligns LIKE with PostgreSQL for the CONTAINS predicate.
SQLITE_PRAGMAS = (
    "PRAGMA foreign_keys=ON",
    "PRAGMA case_sensitive_like=ON",
)


def _apply_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    for pragma in SQLITE_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


def build_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    url = str(url or settings.SQLALCHEMY_DATABASE_URI)
    engine_args = {"echo": settings.SQL_ECHO if echo is None else echo, "pool_pre_ping": True}

    if "sqlite" not in url:
        engine_args.update({"pool_size": 3, "max_overflow": 2, "pool_recycle": 300})

    engine = create_async_engine(url, **engine_args)
    if "sqlite" in url:
        event.listen(engine.sync_engine, "connect", _apply_sqlite_pragmas)
    return engine


engine = build_engine()
AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session
