from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, func
from .base import Base


class StationeryItem(Base):
    __tablename__ = "stationery_items"
    __table_args__ = (CheckConstraint("stock_quantity >= 0", name="ck_stock_non_negative"),)

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False, index=True)
    price = Column(Numeric(12, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
