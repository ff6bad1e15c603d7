import logging
from typing import Optional

from app.schemas.order_schemas import MEMBER_NAME_SHAPE, ORDER_SIMPLE_SHAPE
from domain.models.projection import ProjectionShape
from domain.models.query import FetchPlan, Page, ResultPage
from domain.ports.unit_of_work import UnitOfWork
from domain.rules.predicate_rules import Criteria

logger = logging.getLogger(__name__)

# Order + member + delivery: every association is to-one, one round trip
SIMPLE_ORDER_PLAN = FetchPlan.of("member", "delivery")

# Adds the line items and their catalog item; one to-many, folded
ORDER_WITH_ITEMS_PLAN = FetchPlan.of("member", "delivery", "order_items", "order_items.item")


class OrderQueryService:
    """Read-side entry points for orders. Callers own the unit of work."""

    async def search(
        self,
        uow: UnitOfWork,
        criteria: Criteria = None,
        fetch_plan: Optional[FetchPlan] = None,
        page: Optional[Page] = None,
    ) -> ResultPage:
        result = await uow.orders.search(criteria, fetch_plan, page)
        logger.info(
            "Order search served",
            extra={
                "strategy": result.strategy.value if result.strategy else None,
                "rows": len(result.items),
                "round_trips": result.round_trips,
            },
        )
        return result

    async def search_simple_orders(
        self, uow: UnitOfWork, criteria: Criteria = None, page: Optional[Page] = None
    ) -> ResultPage:
        return await self.search(uow, criteria, SIMPLE_ORDER_PLAN, page)

    async def search_orders_with_items(
        self, uow: UnitOfWork, criteria: Criteria = None, page: Optional[Page] = None
    ) -> ResultPage:
        return await self.search(uow, criteria, ORDER_WITH_ITEMS_PLAN, page)

    async def search_projection(
        self,
        uow: UnitOfWork,
        criteria: Criteria = None,
        shape: ProjectionShape = ORDER_SIMPLE_SHAPE,
        page: Optional[Page] = None,
    ) -> ResultPage:
        result = await uow.order_views.search_projection(criteria, shape, page)
        logger.info(
            "Order projection served",
            extra={"shape": shape.name, "rows": len(result.items)},
        )
        return result

    async def list_member_names(self, uow: UnitOfWork, page: Optional[Page] = None) -> ResultPage:
        return await uow.member_views.search_projection(None, MEMBER_NAME_SHAPE, page)


order_query_service = OrderQueryService()
