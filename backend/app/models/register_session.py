from enum import Enum

from sqlalchemy import Column, String, Integer, DateTime, Numeric, Text, ForeignKey, Index, CheckConstraint, text

from app.models.base import Base, new_id, utcnow


class SessionStatus(str, Enum):
    open = "open"
    closed = "closed"


class RegisterSession(Base):
    __tablename__ = "register_sessions"
    __table_args__ = (
        CheckConstraint("status IN ('open', 'closed')", name="ck_register_sessions_status"),
        # At most one drawer may be open: the index only covers open rows
        Index(
            "uq_register_sessions_single_open",
            "status",
            unique=True,
            postgresql_where=text("status = 'open'"),
            sqlite_where=text("status = 'open'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    status = Column(String(20), nullable=False, default=SessionStatus.open.value)
    opened_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    closed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    opened_at = Column(DateTime, nullable=False, default=utcnow)
    closed_at = Column(DateTime, nullable=True)
    opening_cash = Column(Numeric(10, 2), nullable=False, default=0)
    closing_cash = Column(Numeric(10, 2), nullable=True)
    expected_cash = Column(Numeric(10, 2), nullable=True)
    cash_difference = Column(Numeric(10, 2), nullable=True)  # closing - expected; negative = shortage
    total_sales = Column(Numeric(10, 2), nullable=False, default=0)
    total_orders = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
