from typing import Protocol

from domain.ports.repository import ProjectionPort, SearchRepository


class UnitOfWork(Protocol):
    """
    Unit of Work Interface.
    Owns one session; repositories handed out share it, so repeated loads of
    the same identity inside one unit resolve to the same instance.
    """

    orders: SearchRepository
    order_views: ProjectionPort
    member_views: ProjectionPort

    async def __aenter__(self) -> "UnitOfWork": ...

    async def __aexit__(self, exc_type, exc_value, traceback) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
