from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.models.base import Base, utcnow
from app.models.order import OrderColumns, OrderItemColumns
from app.models.payment import PaymentColumns


class PastOrder(OrderColumns, Base):
    """Archived copy of an Order, same id as the live row it replaced."""

    __tablename__ = "past_orders"

    migrated_at = Column(DateTime, nullable=False, default=utcnow)

    items = relationship("PastOrderItem", back_populates="order", order_by="PastOrderItem.added_at")
    payments = relationship("PastPayment", back_populates="order", order_by="PastPayment.paid_at.desc()")


class PastOrderItem(OrderItemColumns, Base):
    __tablename__ = "past_order_items"

    order_id = Column(String(36), ForeignKey("past_orders.id"), nullable=False, index=True)
    migrated_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship("PastOrder", back_populates="items")


class PastPayment(PaymentColumns, Base):
    __tablename__ = "past_payments"

    order_id = Column(String(36), ForeignKey("past_orders.id"), nullable=False, index=True)
    migrated_at = Column(DateTime, nullable=False, default=utcnow)

    order = relationship("PastOrder", back_populates="payments")
