from sqlalchemy import Column, Integer, ForeignKey, String, DateTime, Numeric
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid

from app.data.database import Base


ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")


def _now():
    return datetime.now(timezone.utc)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    address_id = Column(Integer, ForeignKey("addresses.id"), nullable=True)

    status = Column(String, nullable=False, default="pending")
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String, nullable=True)
    merchant_transaction_id = Column(String(64), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)

    items = relationship("OrderItemModel", back_populates="order", cascade="all, delete-orphan")
    pending_items = relationship(
        "PendingOrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
    )
    address = relationship("AddressModel")
    user = relationship("UserModel")
