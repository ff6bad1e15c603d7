from adapters.persistence.orm.unit_of_work import SqlAlchemyUnitOfWork
from application.services.order_query_service import OrderQueryService


class Container:
    def __init__(self, session_factory=None):
        # Lazy Singletons
        self._session_factory = session_factory
        self._order_query_service = None

    @property
    def session_factory(self):
        if self._session_factory is None:
            from app.core.database import AsyncSessionLocal

            self._session_factory = AsyncSessionLocal
        return self._session_factory

    @property
    def order_query_service(self) -> OrderQueryService:
        if not self._order_query_service:
            self._order_query_service = OrderQueryService()
        return self._order_query_service

    def unit_of_work(self) -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork(self.session_factory)


# Global Container Instance
container = Container()
