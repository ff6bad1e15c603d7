"""
Print the round trips each fetch strategy needs for the same order search.

    python -m scripts.compare_strategies
"""
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from adapters.persistence.orm.unit_of_work import SqlAlchemyUnitOfWork
from app.core.database import build_engine
from app.core.logging_config import setup_logging
from app.db.seeds import seed_sample_orders
from app.models import Base
from application.services.order_query_service import order_query_service
from domain.models.query import FetchPlan, FetchStrategy

PLANS = [
    ("lazy baseline", FetchPlan.of("member", "delivery", strategy=FetchStrategy.LAZY)),
    ("to-one join", FetchPlan.of("member", "delivery")),
    ("join + fold", FetchPlan.of("member", "delivery", "order_items", "order_items.item")),
    ("batched", FetchPlan.of("member", "delivery", "order_items", "order_items.item", "payments")),
]


async def main():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        await seed_sample_orders(session)

    for label, plan in PLANS:
        # Fresh unit of work per plan so the identity map starts empty
        async with SqlAlchemyUnitOfWork(session_factory) as uow:
            result = await order_query_service.search(uow, None, plan)
        print(f"{label:<15} strategy={result.strategy.value:<10} orders={len(result):<3} round_trips={result.round_trips}")

    async with SqlAlchemyUnitOfWork(session_factory) as uow:
        views = await order_query_service.search_projection(uow)
    print(f"{'projection':<15} strategy={'-':<10} orders={len(views):<3} round_trips={views.round_trips}")

    await engine.dispose()


if __name__ == "__main__":
    setup_logging(level="WARNING", json_output=False)
    asyncio.run(main())
