from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint, func
from .base import Base


class RushStatus(Base):
    __tablename__ = "rush_status"
    __table_args__ = (UniqueConstraint("date", "time_slot", name="uq_rush_status_date_slot"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(10), nullable=False)
    time_slot = Column(String(16), nullable=False)
    status = Column(String(8), nullable=False)
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())
