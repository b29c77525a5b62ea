from .base import Base
from .booking import Booking
from .counter import Counter
from .item import StationeryItem
from .rush_status import RushStatus

__all__ = ["Base", "Booking", "Counter", "RushStatus", "StationeryItem"]
