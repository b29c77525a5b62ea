from decimal import Decimal, InvalidOperation
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from ..models.item import StationeryItem
from ..utils.dto import to_item_dto
from ..utils.validators import ensure_positive_int
from .interfaces import ItemCatalog
from .logging import log_event


def parse_price(value) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValueError("price must be a number") from exc
    if price < 0:
        raise ValueError("price must be >= 0")
    return price.quantize(Decimal("0.01"))


class SqlItemCatalog(ItemCatalog):
    """Stationery item listing and admin CRUD backed by DB."""

    def __init__(self, session_factory: Callable) -> None:
        self._session_factory = session_factory

    def list_items(self) -> List[Dict]:
        with self._session_factory() as session:
            rows = session.query(StationeryItem).order_by(StationeryItem.name.asc()).all()
            return [to_item_dto(r) for r in rows]

    def get_item(self, item_id: str) -> Dict:
        with self._session_factory() as session:
            r = session.query(StationeryItem).filter(StationeryItem.id == str(item_id)).first()
            return to_item_dto(r) if r else {}

    def create_item(self, *, name: str, price, stock_quantity: int = 0, item_id: Optional[str] = None) -> Dict:
        name = (name or "").strip()
        if not name:
            raise ValueError("name required")
        item = StationeryItem(
            id=str(item_id or uuid4()),
            name=name,
            price=parse_price(price),
            stock_quantity=ensure_positive_int(stock_quantity, "stock_quantity"),
        )
        with self._session_factory() as session:
            session.add(item)
            session.flush()
            dto = to_item_dto(item)
        log_event("info", "item.created", item_id=dto["id"], name=name)
        return dto

    def update_item(self, item_id: str, *, name: Optional[str] = None, price=None) -> Dict:
        with self._session_factory() as session:
            item = session.query(StationeryItem).filter(StationeryItem.id == str(item_id)).first()
            if not item:
                raise LookupError(f"Item not found: {item_id}")
            if name is not None:
                if not name.strip():
                    raise ValueError("name required")
                item.name = name.strip()
            if price is not None:
                item.price = parse_price(price)
            session.flush()
            return to_item_dto(item)

    def delete_item(self, item_id: str) -> bool:
        with self._session_factory() as session:
            item = session.query(StationeryItem).filter(StationeryItem.id == str(item_id)).first()
            if not item:
                return False
            session.delete(item)
        log_event("info", "item.deleted", item_id=str(item_id))
        return True
