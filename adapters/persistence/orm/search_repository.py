import logging
from typing import Generic, Optional, Sequence, Type

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.persistence.orm.fetch_planner import AssociationFetchPlanner
from adapters.persistence.orm.instrumentation import count_statements
from adapters.persistence.orm.query_assembler import QueryAssembler
from app.core.config import settings
from domain.models.query import FetchPlan, FetchStrategy, FilterField, Page, ResultPage
from domain.ports.repository import T
from domain.rules.fetch_rules import FetchRules
from domain.rules.predicate_rules import Criteria, PredicateBuilder

logger = logging.getLogger(__name__)


class EntitySearchRepository(Generic[T]):
    """
    Filtered search over one mapped root entity with an explicit fetch plan.

    Everything that can be rejected (criteria, page, fetch plan) is checked
    before the first statement is sent.
    """

    def __init__(
        self,
        session: AsyncSession,
        model_cls: Type[T],
        filters: Sequence[FilterField] = (),
        criteria_model: Optional[Type[BaseModel]] = None,
        default_cap: Optional[int] = None,
        max_cap: Optional[int] = None,
    ):
        self.session = session
        self.model_cls = model_cls
        self.assembler = QueryAssembler(model_cls)
        self.planner = AssociationFetchPlanner(session, self.assembler)
        self.predicates = PredicateBuilder(filters, criteria_model)
        self.default_cap = default_cap or settings.DEFAULT_ROW_CAP
        self.max_cap = max_cap or settings.MAX_ROW_CAP

        # Fail at construction on filters pointing at unknown or to-many paths
        for f in filters:
            self.assembler.resolve_column(f.target)

    async def search(
        self,
        criteria: Criteria = None,
        fetch_plan: Optional[FetchPlan] = None,
        page: Optional[Page] = None,
    ) -> ResultPage[T]:
        fetch_plan = fetch_plan or FetchPlan.none()
        page = page or Page()

        terms = self.predicates.build(criteria)
        limit = page.resolve_limit(self.default_cap, self.max_cap)
        associations = self.planner.resolve(fetch_plan)
        strategy = FetchRules.choose_strategy(fetch_plan, associations, page)

        if strategy == FetchStrategy.JOIN_FOLD and page.is_explicit:
            logger.warning(
                "Offset/limit specified with a to-many join; applying in memory",
                extra={"root": self.model_cls.__name__, "offset": page.offset, "limit": limit},
            )

        async with count_statements(self.session) as counter:
            items = await self.planner.load(strategy, associations, terms, page.offset, limit)

        logger.debug(
            "Search finished",
            extra={
                "root": self.model_cls.__name__,
                "strategy": strategy.value,
                "rows": len(items),
                "round_trips": counter.count,
            },
        )
        return ResultPage(
            items=items,
            offset=page.offset,
            limit=limit,
            strategy=strategy,
            round_trips=counter.count,
        )
