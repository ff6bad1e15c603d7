from typing import TYPE_CHECKING, List

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import Mapped, relationship

from app.models.base import Base

if TYPE_CHECKING:
    from app.models.order import Order


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, index=True)

    # Address (embedded value)
    city = Column(String, nullable=True)
    street = Column(String, nullable=True)
    zipcode = Column(String, nullable=True)

    orders: Mapped[List["Order"]] = relationship(
        "Order", back_populates="member", order_by="Order.id"
    )

    def __repr__(self) -> str:
        return f"<Member id={self.id} name={self.name!r}>"
