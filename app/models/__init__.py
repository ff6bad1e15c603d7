from app.models.base import Base
from app.models.item import Item, ItemType
from app.models.member import Member
from app.models.order import Delivery, DeliveryStatus, Order, OrderItem, OrderStatus, Payment

# Export all
__all__ = [
    "Base",
    "Member",
    "Item",
    "ItemType",
    "Delivery",
    "DeliveryStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Payment",
]
