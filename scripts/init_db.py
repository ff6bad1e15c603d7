import asyncio

from app.core.database import AsyncSessionLocal, engine
from app.core.logging_config import setup_logging
from app.db.seeds import seed_sample_orders
from app.models import Base


async def init_models(reset: bool = True):
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        await seed_sample_orders(session)
    print("Database Initialized.")


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_models())
