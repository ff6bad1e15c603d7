import asyncio
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.item import Item, ItemType
from app.models.member import Member
from app.models.order import Delivery, Order, OrderItem, OrderStatus, Payment

logger = logging.getLogger(__name__)

# (member name, city, street, zipcode, [(book name, price, quantity), ...])
SAMPLE_ORDERS = [
    ("userA", "Seoul", "1", "1111", [("JPA1 BOOK", 10000, 1), ("JPA2 BOOK", 20000, 2)]),
    ("userB", "Jinju", "2", "2222", [("SPRING1 BOOK", 20000, 3), ("SPRING2 BOOK", 40000, 4)]),
]


async def seed_sample_orders(session: AsyncSession) -> int:
    """Insert two members with one two-book order each. No-op when members exist."""
    existing = (await session.execute(select(func.count(Member.id)))).scalar_one()
    if existing:
        logger.info("Sample data already present; skipping seed.")
        return 0

    created = 0
    for name, city, street, zipcode, lines in SAMPLE_ORDERS:
        member = Member(name=name, city=city, street=street, zipcode=zipcode)
        delivery = Delivery(city=city, street=street, zipcode=zipcode)
        order = Order(member=member, delivery=delivery, status=OrderStatus.ORDER)

        total = 0
        for book_name, price, quantity in lines:
            item = Item(
                name=book_name,
                price=price,
                stock_quantity=100 - quantity,
                item_type=ItemType.BOOK,
            )
            order.order_items.append(OrderItem(item=item, order_price=price, count=quantity))
            total += price * quantity
        order.payments.append(Payment(amount=total, method="CARD"))

        session.add(order)
        created += 1

    await session.commit()
    logger.info("Seeded sample orders.", extra={"orders": created})
    return created


async def main():
    from app.core.database import AsyncSessionLocal

    async with AsyncSessionLocal() as session:
        await seed_sample_orders(session)


if __name__ == "__main__":
    asyncio.run(main())
