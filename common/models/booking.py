from sqlalchemy import Column, DateTime, Index, JSON, Numeric, String, func
from .base import Base


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_date_slot", "date", "time_slot"),)

    id = Column(String(36), primary_key=True)
    order_number = Column(String(16), nullable=False, unique=True)
    customer_name = Column(String(255), nullable=False, index=True)
    date = Column(String(10), nullable=False, index=True)
    time_slot = Column(String(16), nullable=False)
    items = Column(JSON, nullable=False)  # [{"id": "1", "name": "Notebook", "price": 25.99, "quantity": 2}]
    total_cost = Column(Numeric(12, 2), nullable=False)
    order_status = Column(String(16), nullable=False, default="pending")
    payment_method = Column(String(32), nullable=False)
    payment_status = Column(String(32), nullable=False)
    payment_id = Column(String(128), nullable=True)
    payment_amount = Column(Numeric(12, 2), nullable=True)
    payment_currency = Column(String(3), nullable=False)
    payment_completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
