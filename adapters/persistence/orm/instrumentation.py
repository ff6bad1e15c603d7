from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession


class StatementCounter:
    def __init__(self):
        self.count = 0


# Counter of the call currently running in this task, if any
_active_counter: ContextVar[Optional[StatementCounter]] = ContextVar("statement_counter", default=None)


def _on_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    counter = _active_counter.get()
    if counter is not None:
        counter.count += 1


@asynccontextmanager
async def count_statements(session: AsyncSession):
    """Count statements sent to the database by this task while the block runs."""
    connection = await session.connection()
    engine = connection.sync_engine
    if not event.contains(engine, "before_cursor_execute", _on_cursor_execute):
        event.listen(engine, "before_cursor_execute", _on_cursor_execute)

    counter = StatementCounter()
    token = _active_counter.set(counter)
    try:
        yield counter
    finally:
        _active_counter.reset(token)
