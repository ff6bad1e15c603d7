from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.order import OrderStatus
from domain.models.projection import ProjectionShape
from domain.models.query import FilterField, PredicateKind


class OrderSearch(BaseModel):
    """Sparse order search criteria; every field is optional."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: Optional[OrderStatus] = None
    member_name: Optional[str] = None


ORDER_FILTERS = (
    FilterField(name="status", kind=PredicateKind.EQUALS, target="status"),
    FilterField(name="member_name", kind=PredicateKind.CONTAINS, target="member.name"),
)


# --- Read-only views ---


class OrderSimpleView(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: int
    member_name: str
    order_date: Optional[datetime] = None
    order_status: OrderStatus
    city: Optional[str] = None
    street: Optional[str] = None
    zipcode: Optional[str] = None


class OrderSummaryView(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: int
    member_name: str
    order_date: Optional[datetime] = None


class MemberNameView(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


ORDER_SIMPLE_SHAPE = ProjectionShape(
    name="order_simple",
    model=OrderSimpleView,
    columns={
        "order_id": "id",
        "member_name": "member.name",
        "order_date": "order_date",
        "order_status": "status",
        "city": "delivery.city",
        "street": "delivery.street",
        "zipcode": "delivery.zipcode",
    },
)

ORDER_SUMMARY_SHAPE = ProjectionShape(
    name="order_summary",
    model=OrderSummaryView,
    columns={
        "order_id": "id",
        "member_name": "member.name",
        "order_date": "order_date",
    },
)

MEMBER_NAME_SHAPE = ProjectionShape(
    name="member_name",
    model=MemberNameView,
    columns={"name": "name"},
)
