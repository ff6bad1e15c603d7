from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from adapters.persistence.orm.projection_repository import ProjectionRepository
from adapters.persistence.orm.search_repository import EntitySearchRepository
from app.models.member import Member
from app.models.order import Order
from app.schemas.order_schemas import ORDER_FILTERS, OrderSearch
from domain.ports.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session_factory):
        self.session_factory = session_factory
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self):
        self.session = self.session_factory()
        self.orders = EntitySearchRepository(
            self.session, Order, ORDER_FILTERS, criteria_model=OrderSearch
        )
        self.order_views = ProjectionRepository(
            self.session, Order, ORDER_FILTERS, criteria_model=OrderSearch
        )
        self.member_views = ProjectionRepository(self.session, Member)
        return self

    async def __aexit__(self, exc_type, exc_value, traceback):
        try:
            if exc_type:
                await self.rollback()
            else:
                await self.commit()
        finally:
            await self.session.close()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
