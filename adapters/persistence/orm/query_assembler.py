import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from sqlalchemy import Select, and_, inspect, select
from sqlalchemy.orm import MANYTOONE, RelationshipProperty

from domain.models.query import PredicateKind, PredicateTerm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnPath:
    """A resolved attribute path: the relationship hops and the final column attribute."""

    path: str
    hops: Tuple[str, ...]
    attribute: Any


def is_to_many(relationship: RelationshipProperty) -> bool:
    return bool(relationship.uselist)


def is_nullable(relationship: RelationshipProperty) -> bool:
    """
    A to-one hop may be missing unless it is a many-to-one whose local FK
    columns are all NOT NULL; anything else needs a LEFT join.
    """
    if relationship.direction is not MANYTOONE:
        return True
    return any(col.nullable for col in relationship.local_columns)


class QueryAssembler:
    """
    Builds one SELECT for a root entity from predicate terms and a row cap.

    Relationship hops are joined at most once per statement; a hop joined
    for filtering (INNER) is reused by later eager-load or projection joins.
    """

    def __init__(self, model: Type[Any]):
        self.model = model
        self.mapper = inspect(model)

    # --- Path resolution ---

    def relationship(self, name: str, owner: Optional[Type[Any]] = None) -> RelationshipProperty:
        mapper = inspect(owner) if owner is not None else self.mapper
        try:
            return mapper.relationships[name]
        except KeyError:
            raise KeyError(f"{mapper.class_.__name__} has no relationship '{name}'") from None

    def resolve_column(self, path: str) -> ColumnPath:
        """Resolve 'status' or 'member.name'; every hop must be to-one."""
        *hops, column_name = path.split(".")
        owner = self.model
        for hop in hops:
            rel = self.relationship(hop, owner)
            if is_to_many(rel):
                raise ValueError(f"Path '{path}' crosses to-many relationship '{hop}'")
            owner = rel.mapper.class_

        owner_mapper = inspect(owner)
        if column_name not in owner_mapper.column_attrs:
            raise KeyError(f"{owner.__name__} has no column '{column_name}' (path '{path}')")
        return ColumnPath(path=path, hops=tuple(hops), attribute=getattr(owner, column_name))

    def primary_key(self, model: Optional[Type[Any]] = None) -> List[Any]:
        mapper = inspect(model) if model is not None else self.mapper
        return [getattr(mapper.class_, mapper.get_property_by_column(col).key) for col in mapper.primary_key]

    # --- Statement construction ---

    def join(self, stmt: Select, joined: Dict[str, bool], path: str, isouter: bool = False) -> Select:
        """Join a dotted relationship path onto `stmt`, recording it in `joined` (path -> isouter)."""
        parts = path.split(".")
        owner = self.model
        for depth in range(len(parts)):
            sub_path = ".".join(parts[: depth + 1])
            rel = self.relationship(parts[depth], owner)
            if sub_path not in joined:
                stmt = stmt.join(getattr(owner, parts[depth]), isouter=isouter)
                joined[sub_path] = isouter
            owner = rel.mapper.class_
        return stmt

    def where_clauses(self, terms: Iterable[PredicateTerm]) -> list:
        clauses = []
        for term in terms:
            column = self.resolve_column(term.target).attribute
            if term.kind == PredicateKind.EQUALS:
                clauses.append(column == term.value)
            elif term.kind == PredicateKind.CONTAINS:
                clauses.append(column.contains(term.value, autoescape=True))
            else:
                raise ValueError(f"Unsupported predicate kind: {term.kind}")
        return clauses

    def assemble(
        self,
        terms: Sequence[PredicateTerm],
        columns: Optional[Sequence[Any]] = None,
        joins: Sequence[Tuple[str, bool]] = (),
        limit: Optional[int] = None,
        offset: int = 0,
        joined: Optional[Dict[str, bool]] = None,
    ) -> Select:
        """
        SELECT <columns> FROM root [JOIN ...] [WHERE t1 AND t2 ...]
        ORDER BY root pk [LIMIT limit] [OFFSET offset]

        Filter hops are INNER joins. `joins` adds (path, isouter) pairs after them.
        No WHERE clause at all when `terms` is empty.
        """
        joined = {} if joined is None else joined
        stmt = select(*(columns or (self.model,))).select_from(self.model)

        for term in terms:
            hops = self.resolve_column(term.target).hops
            if hops:
                stmt = self.join(stmt, joined, ".".join(hops), isouter=False)

        for path, isouter in joins:
            stmt = self.join(stmt, joined, path, isouter=isouter)

        clauses = self.where_clauses(terms)
        if clauses:
            stmt = stmt.where(and_(*clauses))

        stmt = stmt.order_by(*self.primary_key())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)

        logger.debug(
            "Assembled query",
            extra={"root": self.model.__name__, "predicates": len(clauses), "joins": list(joined)},
        )
        return stmt
