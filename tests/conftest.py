import os

# Set test environment variables BEFORE any app imports
os.environ.setdefault("SQLALCHEMY_DATABASE_URI", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TESTING", "1")
os.environ.setdefault("LOG_JSON", "false")

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.database import build_engine
from app.models import Base, Delivery, Item, ItemType, Member, Order, OrderItem, OrderStatus, Payment

DATABASE_URL = "sqlite+aiosqlite:///:memory:"


async def seed_shop(session: AsyncSession) -> dict:
    """
    Five orders, two of them SHIPPED.

    order 1  kim   SHIPPED  JPA1 x1, JPA2 x2     2 payments
    order 2  kim   ORDER    SPRING1 x1           1 payment
    order 3  lee   SHIPPED  JPA1 x3, SPRING2 x1  1 payment
    order 4  lee   CANCEL   no delivery, no lines, no payments
    order 5  park  ORDER    SPRING2 x2           2 payments
    """
    kim = Member(name="kim", city="Seoul", street="1", zipcode="1111")
    lee = Member(name="lee", city="Busan", street="2", zipcode="2222")
    park = Member(name="park", city="Incheon", street="3", zipcode="3333")

    jpa1 = Item(name="JPA1 BOOK", price=10000, stock_quantity=100, item_type=ItemType.BOOK)
    jpa2 = Item(name="JPA2 BOOK", price=20000, stock_quantity=100, item_type=ItemType.BOOK)
    spring1 = Item(name="SPRING1 BOOK", price=20000, stock_quantity=100, item_type=ItemType.BOOK)
    spring2 = Item(name="SPRING2 BOOK", price=40000, stock_quantity=100, item_type=ItemType.BOOK)

    def delivery_for(member):
        return Delivery(city=member.city, street=member.street, zipcode=member.zipcode)

    orders = [
        Order(
            member=kim,
            delivery=delivery_for(kim),
            status=OrderStatus.SHIPPED,
            order_items=[
                OrderItem(item=jpa1, order_price=10000, count=1),
                OrderItem(item=jpa2, order_price=20000, count=2),
            ],
            payments=[Payment(amount=30000), Payment(amount=20000)],
        ),
        Order(
            member=kim,
            delivery=delivery_for(kim),
            status=OrderStatus.ORDER,
            order_items=[OrderItem(item=spring1, order_price=20000, count=1)],
            payments=[Payment(amount=20000)],
        ),
        Order(
            member=lee,
            delivery=delivery_for(lee),
            status=OrderStatus.SHIPPED,
            order_items=[
                OrderItem(item=jpa1, order_price=10000, count=3),
                OrderItem(item=spring2, order_price=40000, count=1),
            ],
            payments=[Payment(amount=70000)],
        ),
        Order(member=lee, delivery=None, status=OrderStatus.CANCEL),
        Order(
            member=park,
            delivery=delivery_for(park),
            status=OrderStatus.ORDER,
            order_items=[OrderItem(item=spring2, order_price=40000, count=2)],
            payments=[Payment(amount=40000), Payment(amount=40000)],
        ),
    ]
    session.add_all(orders)
    await session.commit()
    return {
        "order_ids": [o.id for o in orders],
        "member_ids": {"kim": kim.id, "lee": lee.id, "park": park.id},
    }


class QueryCounter:
    def __init__(self):
        self.statements = []

    def __call__(self, conn, cursor, statement, parameters, context, executemany):
        self.statements.append(statement)

    @property
    def count(self) -> int:
        return len(self.statements)

    def reset(self):
        self.statements.clear()


@pytest_asyncio.fixture
async def engine():
    engine = build_engine(DATABASE_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def shop(session_factory):
    async with session_factory() as session:
        return await seed_shop(session)


@pytest_asyncio.fixture
async def db_session(session_factory, shop):
    # Fresh session: nothing from seeding sits in the identity map
    async with session_factory() as session:
        yield session


@pytest.fixture
def query_counter(engine, shop):
    counter = QueryCounter()
    event.listen(engine.sync_engine, "before_cursor_execute", counter)
    yield counter
    event.remove(engine.sync_engine, "before_cursor_execute", counter)
