from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey

from app.models.base import Base, new_id, utcnow


class KotPrint(Base):
    """One kitchen order ticket print for an order. Not archived."""

    __tablename__ = "kot_prints"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    print_number = Column(Integer, nullable=False, default=1)
    major_category = Column(String(100), nullable=True)
    item_ids = Column(Text, nullable=True)
    printed_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    printed_at = Column(DateTime, nullable=False, default=utcnow)


class RiderReceipt(Base):
    __tablename__ = "rider_receipts"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    printed_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    printed_at = Column(DateTime, nullable=False, default=utcnow)
