from enum import Enum

from sqlalchemy import Column, String, DateTime, Numeric, Text, ForeignKey
from sqlalchemy.orm import declared_attr, relationship

from app.models.base import Base, new_id, utcnow


class PaymentMethod(str, Enum):
    cash = "cash"
    card = "card"
    online = "online"
    other = "other"


PAYMENT_METHODS = frozenset(m.value for m in PaymentMethod)


class PaymentColumns:
    """Columns shared by live payments and their archived copies."""

    id = Column(String(36), primary_key=True, default=new_id)
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    method = Column(String(20), nullable=False)  # cash, card, online, other
    reference = Column(String(255), nullable=True)
    paid_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @declared_attr
    def received_by(cls):
        return Column(String(36), ForeignKey("users.id"), nullable=False)


class Payment(PaymentColumns, Base):
    __tablename__ = "payments"

    # The store does not cap the sum of payments at the order total
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)

    order = relationship("Order", back_populates="payments")
