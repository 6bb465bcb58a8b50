from .base import Base
from .user import User
from .register_session import RegisterSession, SessionStatus
from .order import Order, OrderItem, OrderStatus, OrderType
from .payment import Payment, PaymentMethod, PAYMENT_METHODS
from .print_tracking import KotPrint, RiderReceipt
from .past_order import PastOrder, PastOrderItem, PastPayment

__all__ = [
    "Base",
    "User",
    "RegisterSession",
    "SessionStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OrderType",
    "Payment",
    "PaymentMethod",
    "PAYMENT_METHODS",
    "KotPrint",
    "RiderReceipt",
    "PastOrder",
    "PastOrderItem",
    "PastPayment",
]
