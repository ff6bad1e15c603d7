import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.database import build_engine
from app.models import Base
from tests.conftest import seed_shop

postgres = pytest.importorskip("testcontainers.postgres")


def _docker_available() -> bool:
    try:
        import docker

        docker.from_env().ping()
    except Exception:
        return False
    return True


@pytest.fixture(scope="session")
def postgres_container():
    """
    Spins up a Postgres container for the duration of the test session.
    """
    if not _docker_available():
        pytest.skip("Docker is not available")
    with postgres.PostgresContainer("postgres:15-alpine") as container:
        yield container


@pytest.fixture(scope="session")
def postgres_url(postgres_container):
    db_url = postgres_container.get_connection_url()
    # testcontainers hands out a psycopg2 URL; the app runs on asyncpg
    async_db_url = db_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://")
    if "asyncpg" not in async_db_url:
        async_db_url = async_db_url.replace("postgresql://", "postgresql+asyncpg://")
    return async_db_url


@pytest_asyncio.fixture
async def pg_session_factory(postgres_url):
    engine = build_engine(postgres_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await seed_shop(session)

    yield factory
    await engine.dispose()
