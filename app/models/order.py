import enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, relationship
from sqlalchemy.sql import func

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.item import Item
    from app.models.member import Member


class OrderStatus(str, enum.Enum):
    ORDER = "ORDER"
    SHIPPED = "SHIPPED"
    CANCEL = "CANCEL"


class DeliveryStatus(str, enum.Enum):
    READY = "READY"
    COMP = "COMP"


class Delivery(Base):
    __tablename__ = "deliveries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    city = Column(String, nullable=True)
    street = Column(String, nullable=True)
    zipcode = Column(String, nullable=True)
    status = Column(Enum(DeliveryStatus), default=DeliveryStatus.READY, nullable=False)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    member_id = Column(Integer, ForeignKey("members.id"), nullable=False, index=True)
    delivery_id = Column(Integer, ForeignKey("deliveries.id"), nullable=True, unique=True)
    order_date = Column(DateTime(timezone=True), server_default=func.now())
    status = Column(Enum(OrderStatus), default=OrderStatus.ORDER, nullable=False)

    # To-one
    member: Mapped["Member"] = relationship("Member", back_populates="orders")
    delivery: Mapped[Optional["Delivery"]] = relationship("Delivery")

    # To-many
    order_items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem", back_populates="order", order_by="OrderItem.id"
    )
    payments: Mapped[List["Payment"]] = relationship(
        "Payment", back_populates="order", order_by="Payment.id"
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id"), nullable=False)
    order_price = Column(Integer, nullable=False)
    count = Column(Integer, default=1, nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="order_items")
    item: Mapped["Item"] = relationship("Item")

    def total_price(self) -> int:
        return self.order_price * self.count


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    method = Column(String, default="CARD", nullable=False)
    paid_at = Column(DateTime(timezone=True), server_default=func.now())

    order: Mapped["Order"] = relationship("Order", back_populates="payments")
