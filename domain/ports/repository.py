from typing import Any, Optional, Protocol, TypeVar

from pydantic import BaseModel

from domain.models.projection import ProjectionShape
from domain.models.query import FetchPlan, Page, ResultPage

T = TypeVar("T")


class SearchRepository(Protocol[T]):
    """
    Filtered entity search.
    Decouples callers from how associations are fetched.
    """

    async def search(
        self,
        criteria: Any = None,
        fetch_plan: Optional[FetchPlan] = None,
        page: Optional[Page] = None,
    ) -> ResultPage[T]:
        """Roots matching every populated criteria field, associations per the plan."""
        ...


class ProjectionPort(Protocol):
    """Flat read-only views; never returns entities."""

    async def search_projection(
        self,
        criteria: Any,
        shape: ProjectionShape,
        page: Optional[Page] = None,
    ) -> ResultPage[BaseModel]:
        ...
