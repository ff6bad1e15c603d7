"""
Value objects passed between the query engine layers.

All of them are immutable and call-scoped: a caller builds them, hands
them to a repository, and gets a `ResultPage` back.
"""
import enum
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, Tuple, TypeVar

from domain.errors import IllegalFetchCombinationError, InvalidPageError

T = TypeVar("T")


class PredicateKind(str, enum.Enum):
    EQUALS = "EQUALS"
    # Case-sensitive substring match anywhere in the value; LIKE wildcards are escaped
    CONTAINS = "CONTAINS"


class FetchStrategy(str, enum.Enum):
    NONE = "NONE"
    LAZY = "LAZY"
    JOIN = "JOIN"
    JOIN_FOLD = "JOIN_FOLD"
    BATCH = "BATCH"


class AssociationKind(str, enum.Enum):
    TO_ONE = "TO_ONE"
    TO_MANY = "TO_MANY"


@dataclass(frozen=True)
class FilterField:
    """Declares how one criteria field becomes a predicate.

    `target` is an attribute path on the root entity; a dotted path
    ("member.name") crosses a to-one relationship.
    """

    name: str
    kind: PredicateKind
    target: str


@dataclass(frozen=True)
class PredicateTerm:
    field: str
    kind: PredicateKind
    target: str
    value: Any


@dataclass(frozen=True)
class FetchPlan:
    associations: Tuple[str, ...] = ()
    strategy: Optional[FetchStrategy] = None

    def __post_init__(self):
        # Accept any iterable of paths but keep a stable, duplicate-free tuple
        seen = []
        for path in self.associations:
            if path not in seen:
                seen.append(path)
        object.__setattr__(self, "associations", tuple(seen))

        if self.strategy is not None:
            try:
                strategy = FetchStrategy(self.strategy)
            except ValueError:
                raise IllegalFetchCombinationError(f"Unknown fetch strategy: {self.strategy!r}") from None
            object.__setattr__(self, "strategy", strategy)

    @classmethod
    def none(cls) -> "FetchPlan":
        return cls()

    @classmethod
    def of(cls, *associations: str, strategy: Optional[FetchStrategy] = None) -> "FetchPlan":
        return cls(associations=tuple(associations), strategy=strategy)

    @property
    def is_empty(self) -> bool:
        return not self.associations


@dataclass(frozen=True)
class Page:
    offset: int = 0
    limit: Optional[int] = None
    # Caller accepts pagination applied after folding a to-many join
    in_memory: bool = False

    def __post_init__(self):
        for name in ("offset", "limit"):
            value = getattr(self, name)
            if value is None and name == "limit":
                continue
            # bool is an int subclass but never a valid bound
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidPageError(f"{name} must be an integer, got {value!r}")
        if self.offset < 0:
            raise InvalidPageError(f"offset must be >= 0, got {self.offset}")
        if self.limit is not None and self.limit < 1:
            raise InvalidPageError(f"limit must be >= 1, got {self.limit}")

    @property
    def is_explicit(self) -> bool:
        return self.limit is not None or self.offset > 0

    @property
    def requires_exact(self) -> bool:
        """True when offset/limit must be honored by the storage query itself."""
        return self.is_explicit and not self.in_memory

    def resolve_limit(self, default_cap: int, max_cap: int) -> int:
        if self.limit is None:
            return default_cap
        if self.limit > max_cap:
            raise InvalidPageError(f"limit {self.limit} exceeds the maximum of {max_cap}")
        return self.limit


@dataclass
class ResultPage(Generic[T]):
    items: List[T]
    offset: int
    limit: int
    strategy: Optional[FetchStrategy] = None
    round_trips: int = 0

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


@dataclass(frozen=True)
class ResolvedAssociation:
    """A fetch plan path after it has been checked against the mapped model."""

    path: str
    kind: AssociationKind
    parent: Optional[str] = None

    @property
    def is_nested(self) -> bool:
        return self.parent is not None
