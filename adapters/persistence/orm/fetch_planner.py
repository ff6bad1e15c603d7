import logging
from typing import Any, Dict, List, Sequence, Tuple

from sqlalchemy import inspect, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager
from sqlalchemy.orm.attributes import set_committed_value

from adapters.persistence.orm.query_assembler import QueryAssembler, is_nullable, is_to_many
from domain.errors import IllegalFetchCombinationError
from domain.models.query import (
    AssociationKind,
    FetchPlan,
    FetchStrategy,
    PredicateTerm,
    ResolvedAssociation,
)
from domain.rules.folding_rules import fold_rows

logger = logging.getLogger(__name__)


def identity_of(instance: Any):
    return inspect(instance).identity


class AssociationFetchPlanner:
    """
    Materializes root entities together with the associations a FetchPlan asks for.

    NONE       plain root query, associations left unloaded.
    LAZY       plain root query, then one load per unloaded association per row.
               Costs O(rows x associations) round trips; kept as the baseline.
    JOIN       to-one associations joined into the root query; pagination exact.
    JOIN_FOLD  one to-many joined as well; rows are folded per root and the page
               is sliced in memory after overfetching.
    BATCH      to-one joins in the root query, then one IN (...) query per
               to-many association, stitched onto the roots by key.
    """

    def __init__(self, session: AsyncSession, assembler: QueryAssembler):
        self.session = session
        self.assembler = assembler
        self.model = assembler.model

    # --- Plan resolution ---

    def resolve(self, plan: FetchPlan) -> List[ResolvedAssociation]:
        """Check every path against the mapping; nested paths pull in their parent."""
        resolved: Dict[str, ResolvedAssociation] = {}

        for path in plan.associations:
            parts = path.split(".")
            if len(parts) > 2:
                raise IllegalFetchCombinationError(f"Association path '{path}' is deeper than two levels")

            head = self._relationship(parts[0], self.model, path)
            if parts[0] not in resolved:
                resolved[parts[0]] = ResolvedAssociation(
                    path=parts[0],
                    kind=AssociationKind.TO_MANY if is_to_many(head) else AssociationKind.TO_ONE,
                )
            if is_to_many(head):
                self._check_batchable(parts[0], head)

            if len(parts) == 2:
                if not is_to_many(head):
                    raise IllegalFetchCombinationError(
                        f"Nested path '{path}' must hang off a to-many association"
                    )
                child = self._relationship(parts[1], head.mapper.class_, path)
                if is_to_many(child):
                    raise IllegalFetchCombinationError(
                        f"Nested path '{path}' would join a second to-many level"
                    )
                resolved[path] = ResolvedAssociation(
                    path=path, kind=AssociationKind.TO_ONE, parent=parts[0]
                )

        return list(resolved.values())

    def _relationship(self, name: str, owner: Any, path: str):
        try:
            return self.assembler.relationship(name, owner)
        except KeyError:
            raise IllegalFetchCombinationError(
                f"Unknown association '{name}' in path '{path}'"
            ) from None

    def _check_batchable(self, name: str, rel) -> None:
        if rel.secondary is not None or len(rel.local_remote_pairs) != 1:
            raise IllegalFetchCombinationError(
                f"Association '{name}' needs a single-column foreign key to be eagerly loaded"
            )

    # --- Execution ---

    async def load(
        self,
        strategy: FetchStrategy,
        associations: Sequence[ResolvedAssociation],
        terms: Sequence[PredicateTerm],
        offset: int,
        limit: int,
    ) -> List[Any]:
        logger.debug(
            "Loading roots",
            extra={
                "root": self.model.__name__,
                "strategy": strategy.value,
                "associations": [a.path for a in associations],
            },
        )
        if strategy == FetchStrategy.NONE:
            return await self._load_roots(terms, (), offset, limit)
        if strategy == FetchStrategy.LAZY:
            return await self._load_lazy(associations, terms, offset, limit)
        if strategy == FetchStrategy.JOIN:
            return await self._load_roots(terms, self._top_level_to_one(associations), offset, limit)
        if strategy == FetchStrategy.JOIN_FOLD:
            return await self._load_join_fold(associations, terms, offset, limit)
        if strategy == FetchStrategy.BATCH:
            return await self._load_batched(associations, terms, offset, limit)
        raise ValueError(f"Unsupported fetch strategy: {strategy}")

    def _top_level_to_one(self, associations: Sequence[ResolvedAssociation]) -> List[str]:
        return [a.path for a in associations if a.kind == AssociationKind.TO_ONE and not a.is_nested]

    def _children_of(self, associations: Sequence[ResolvedAssociation], parent: str) -> List[str]:
        return [a.path.split(".", 1)[1] for a in associations if a.parent == parent]

    def _to_one_joins(self, names: Sequence[str]) -> Tuple[List[Tuple[str, bool]], list]:
        joins, options = [], []
        for name in names:
            rel = self.assembler.relationship(name)
            joins.append((name, is_nullable(rel)))
            options.append(contains_eager(getattr(self.model, name)))
        return joins, options

    async def _load_roots(
        self,
        terms: Sequence[PredicateTerm],
        to_one: Sequence[str],
        offset: int,
        limit: int,
    ) -> List[Any]:
        joins, options = self._to_one_joins(to_one)
        stmt = self.assembler.assemble(terms, joins=joins, limit=limit, offset=offset)
        if options:
            stmt = stmt.options(*options)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _load_lazy(self, associations, terms, offset, limit) -> List[Any]:
        roots = await self._load_roots(terms, (), offset, limit)
        top_level = [a for a in associations if not a.is_nested]

        for root in roots:
            for assoc in top_level:
                value = await getattr(root.awaitable_attrs, assoc.path)
                targets = value if assoc.kind == AssociationKind.TO_MANY else [value]
                for child in self._children_of(associations, assoc.path):
                    for target in targets:
                        if target is not None:
                            await getattr(target.awaitable_attrs, child)
        return roots

    async def _load_join_fold(self, associations, terms, offset, limit) -> List[Any]:
        (collection,) = [
            a.path for a in associations
            if a.kind == AssociationKind.TO_MANY and not a.is_nested
        ]
        rel = self.assembler.relationship(collection)
        target = rel.mapper.class_
        children = self._children_of(associations, collection)
        child_classes = [self.assembler.relationship(c, target).mapper.class_ for c in children]

        joins, options = self._to_one_joins(self._top_level_to_one(associations))
        joins.append((collection, True))
        joins.extend((f"{collection}.{c}", True) for c in children)

        # No LIMIT/OFFSET: a root spans several rows, so the page is cut after folding
        stmt = self.assembler.assemble(
            terms, columns=(self.model, target, *child_classes), joins=joins
        )
        stmt = stmt.order_by(*self.assembler.primary_key(target))
        if options:
            stmt = stmt.options(*options)
        rows = (await self.session.execute(stmt)).all()

        for row in rows:
            member = row[1]
            if member is None:
                continue
            for name, value in zip(children, row[2:]):
                set_committed_value(member, name, value)

        folded = fold_rows(
            ((row[0], row[1]) for row in rows),
            root_key=identity_of,
            member_key=identity_of,
        )
        for root, members in folded:
            set_committed_value(root, collection, members)

        roots = [root for root, _ in folded]
        return roots[offset : offset + limit]

    async def _load_batched(self, associations, terms, offset, limit) -> List[Any]:
        roots = await self._load_roots(terms, self._top_level_to_one(associations), offset, limit)
        if not roots:
            return roots

        for assoc in associations:
            if assoc.kind != AssociationKind.TO_MANY or assoc.is_nested:
                continue
            await self._load_collection(roots, assoc.path, self._children_of(associations, assoc.path))
        return roots

    async def _load_collection(self, roots: List[Any], name: str, children: Sequence[str]) -> None:
        """One IN (...) query for `name` across every root, then stitch by foreign key."""
        rel = self.assembler.relationship(name)
        target = rel.mapper.class_
        ((local_col, remote_col),) = rel.local_remote_pairs
        local_key = self.assembler.mapper.get_property_by_column(local_col).key
        remote_attr = getattr(target, rel.mapper.get_property_by_column(remote_col).key)

        keys = list(dict.fromkeys(getattr(root, local_key) for root in roots))

        stmt = select(target).where(remote_attr.in_(keys))
        for child in children:
            stmt = stmt.join(getattr(target, child), isouter=True)
            stmt = stmt.options(contains_eager(getattr(target, child)))
        order_by = list(rel.order_by) if rel.order_by else self.assembler.primary_key(target)
        stmt = stmt.order_by(remote_attr, *order_by)

        members = (await self.session.execute(stmt)).scalars().all()

        buckets: Dict[Any, List[Any]] = {key: [] for key in keys}
        remote_key = remote_attr.key
        for member in members:
            buckets[getattr(member, remote_key)].append(member)

        for root in roots:
            set_committed_value(root, name, buckets[getattr(root, local_key)])
        logger.debug(
            "Batched collection load",
            extra={"association": name, "roots": len(roots), "rows": len(members)},
        )
