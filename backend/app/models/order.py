from enum import Enum

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Numeric, Text, ForeignKey, JSON
from sqlalchemy.orm import declared_attr, relationship

from app.models.base import Base, new_id, utcnow


class OrderStatus(str, Enum):
    open = "open"
    completed = "completed"
    cancelled = "cancelled"


class OrderType(str, Enum):
    dine_in = "dine_in"
    take_away = "take_away"
    delivery = "delivery"


class OrderColumns:
    """Columns shared by live orders and their archived copies."""

    id = Column(String(36), primary_key=True, default=new_id)
    order_number = Column(String(50), nullable=False, unique=True, index=True)
    order_type = Column(String(20), nullable=False, default=OrderType.dine_in.value)
    table_id = Column(String(36), nullable=True)
    waiter_id = Column(String(36), nullable=True)
    customer_name = Column(String(255), nullable=True)
    customer_phone = Column(String(50), nullable=True)
    customer_id = Column(String(36), nullable=True, index=True)
    rider_id = Column(String(36), nullable=True)
    delivery_address = Column(String(500), nullable=True)
    delivery_charge = Column(Numeric(10, 2), nullable=False, default=0)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    discount_type = Column(String(20), nullable=True)  # percentage or fixed
    discount_value = Column(Numeric(10, 2), nullable=True)
    discount_reference = Column(String(255), nullable=True)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=OrderStatus.open.value, index=True)
    delivery_status = Column(String(20), nullable=True)
    is_paid = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)
    last_kot_printed_at = Column(DateTime, nullable=True)
    kot_print_count = Column(Integer, nullable=False, default=0)
    completed_by = Column(String(36), nullable=True)
    cancellation_reason = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    completed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @declared_attr
    def register_session_id(cls):
        return Column(String(36), ForeignKey("register_sessions.id"), nullable=False, index=True)

    @declared_attr
    def created_by(cls):
        return Column(String(36), ForeignKey("users.id"), nullable=False)


class OrderItemColumns:
    id = Column(String(36), primary_key=True, default=new_id)
    item_type = Column(String(20), nullable=False, default="menu_item")  # menu_item or deal
    menu_item_id = Column(String(36), nullable=True)
    deal_id = Column(String(36), nullable=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False, default=0)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    selected_variants = Column(JSON, nullable=True)
    deal_breakdown = Column(JSON, nullable=True)
    added_at = Column(DateTime, nullable=False, default=utcnow)
    last_printed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)


class Order(OrderColumns, Base):
    __tablename__ = "orders"

    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.added_at")
    payments = relationship("Payment", back_populates="order", order_by="Payment.paid_at")


class OrderItem(OrderItemColumns, Base):
    __tablename__ = "order_items"

    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)

    order = relationship("Order", back_populates="items")
