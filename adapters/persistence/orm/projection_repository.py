import logging
from typing import Any, List, Optional, Sequence, Type

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.persistence.orm.instrumentation import count_statements
from adapters.persistence.orm.query_assembler import QueryAssembler, is_nullable
from app.core.config import settings
from domain.errors import ProjectionShapeError
from domain.models.projection import ProjectionShape
from domain.models.query import FilterField, Page, ResultPage
from domain.rules.predicate_rules import Criteria, PredicateBuilder

logger = logging.getLogger(__name__)


class ProjectionRepository:
    """
    Reads flat views directly from a join query, skipping entity materialization.

    Only the columns named by the shape are selected. Projections fan out
    through to-one relationships only, so no folding is needed and
    pagination is always exact.
    """

    def __init__(
        self,
        session: AsyncSession,
        model_cls: Type[Any],
        filters: Sequence[FilterField] = (),
        criteria_model: Optional[Type[BaseModel]] = None,
        default_cap: Optional[int] = None,
        max_cap: Optional[int] = None,
    ):
        self.session = session
        self.model_cls = model_cls
        self.assembler = QueryAssembler(model_cls)
        self.predicates = PredicateBuilder(filters, criteria_model)
        self.default_cap = default_cap or settings.DEFAULT_ROW_CAP
        self.max_cap = max_cap or settings.MAX_ROW_CAP

        for f in filters:
            self.assembler.resolve_column(f.target)

    def _columns(self, shape: ProjectionShape) -> List[Any]:
        columns = []
        for field_name, path in shape.columns.items():
            try:
                resolved = self.assembler.resolve_column(path)
            except (KeyError, ValueError) as exc:
                raise ProjectionShapeError(
                    f"Projection '{shape.name}' field '{field_name}': {exc}"
                ) from exc
            columns.append(resolved.attribute.label(field_name))
        return columns

    def _joins(self, shape: ProjectionShape) -> List[tuple]:
        joins = []
        for path in shape.joins:
            *parents, name = path.split(".")
            owner = self.model_cls
            for parent in parents:
                owner = self.assembler.relationship(parent, owner).mapper.class_
            rel = self.assembler.relationship(name, owner)
            # An outer parent hop makes every hop below it outer too
            parent_outer = any(j[1] for j in joins if path.startswith(j[0] + "."))
            joins.append((path, parent_outer or is_nullable(rel)))
        return joins

    async def search_projection(
        self,
        criteria: Criteria,
        shape: ProjectionShape,
        page: Optional[Page] = None,
    ) -> ResultPage[BaseModel]:
        page = page or Page()
        terms = self.predicates.build(criteria)
        limit = page.resolve_limit(self.default_cap, self.max_cap)
        columns = self._columns(shape)
        joins = self._joins(shape)

        stmt = self.assembler.assemble(
            terms, columns=columns, joins=joins, limit=limit, offset=page.offset
        )
        async with count_statements(self.session) as counter:
            rows = (await self.session.execute(stmt)).mappings().all()

        items = [shape.model.model_validate(dict(row)) for row in rows]
        logger.debug(
            "Projection finished",
            extra={"shape": shape.name, "rows": len(items), "round_trips": counter.count},
        )
        return ResultPage(
            items=items,
            offset=page.offset,
            limit=limit,
            round_trips=counter.count,
        )
