from sqlalchemy import Column, Integer, String
from .base import Base


class Counter(Base):
    __tablename__ = "counters"

    ORDER_NUMBER = "order_number"

    name = Column(String(64), primary_key=True)
    sequence_value = Column(Integer, nullable=False, default=0)
