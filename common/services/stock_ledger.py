from typing import Callable, Dict, Iterable, Optional, Sequence

from sqlalchemy import case
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from ..models.item import StationeryItem
from ..utils.validators import ensure_positive_int
from .interfaces import DecrementLine, StockCheck, StockLedger, StockUpdate, ValidationLine, check_lines
from .logging import log_event


LOW_STOCK_THRESHOLD = 5


def stock_status(quantity: int) -> Dict:
    """Display classification for a stock level."""
    q = int(quantity or 0)
    if q == 0:
        return {"status": "out_of_stock", "text": "Out of Stock"}
    if q <= LOW_STOCK_THRESHOLD:
        return {"status": "low_stock", "text": f"Only {q} left"}
    return {"status": "in_stock", "text": f"{q} in stock"}


class SqlStockLedger(StockLedger):
    """Stock counts on the ``stationery_items`` table.

    Validation is a point-in-time read; the decrement is a single UPDATE per
    line, clamped at zero by the database. Nothing spans the two.
    """

    def __init__(self, session_factory: Callable) -> None:
        self._session_factory = session_factory

    def get_levels(self, item_ids: Optional[Iterable[str]] = None) -> Dict[str, int]:
        with self._session_factory() as session:
            q = session.query(StationeryItem.id, StationeryItem.stock_quantity)
            if item_ids is not None:
                ids = [str(i) for i in item_ids]
                if not ids:
                    return {}
                q = q.filter(StationeryItem.id.in_(ids))
            return {str(row[0]): int(row[1]) for row in q.all()}

    def validate(self, lines: Sequence[ValidationLine]) -> StockCheck:
        try:
            levels = self.get_levels([line[0] for line in lines])
        except OperationalError as exc:
            log_event("warning", "stock.validate.unreachable", error=str(exc))
            return StockCheck(valid=True, message="Stock validation passed (Demo Mode)")
        except SQLAlchemyError as exc:
            log_event("error", "stock.validate.failed", error=str(exc))
            return StockCheck(valid=False, message="Failed to validate stock")
        result = check_lines(lines, levels)
        if not result.valid:
            log_event("info", "stock.validate.rejected", details=result.details)
        return result

    def decrement(self, lines: Sequence[DecrementLine]) -> StockUpdate:
        applied = []
        for item_id, quantity in lines:
            qty = ensure_positive_int(quantity, "quantity")
            try:
                with self._session_factory() as session:
                    remaining = StationeryItem.stock_quantity - qty
                    matched = (
                        session.query(StationeryItem)
                        .filter(StationeryItem.id == str(item_id))
                        .update(
                            {StationeryItem.stock_quantity: case((remaining < 0, 0), else_=remaining)},
                            synchronize_session=False,
                        )
                    )
            except OperationalError as exc:
                if applied:
                    log_event("error", "stock.decrement.failed", item_id=str(item_id), applied=applied, error=str(exc))
                    return StockUpdate(success=False, message="Failed to update stock", applied=applied, error=str(exc))
                log_event("warning", "stock.decrement.unreachable", error=str(exc))
                return StockUpdate(success=True, message="Stock updated (Demo Mode)")
            except SQLAlchemyError as exc:
                log_event("error", "stock.decrement.failed", item_id=str(item_id), applied=applied, error=str(exc))
                return StockUpdate(success=False, message="Failed to update stock", applied=applied, error=str(exc))
            if not matched:
                error = f"Item with id {item_id} not found"
                log_event("error", "stock.decrement.not_found", item_id=str(item_id), applied=applied)
                return StockUpdate(success=False, message="Failed to update stock", applied=applied, error=error)
            applied.append(str(item_id))
        log_event("info", "stock.decremented", items=applied)
        return StockUpdate(success=True, message="Stock updated successfully", applied=applied)

    def set_stock(self, item_id: str, quantity: int) -> int:
        new_qty = max(0, int(quantity))
        with self._session_factory() as session:
            item = session.query(StationeryItem).filter(StationeryItem.id == str(item_id)).first()
            if item is None:
                raise LookupError(f"Item not found: {item_id}")
            item.stock_quantity = new_qty
            session.flush()
        log_event("info", "stock.set", item_id=str(item_id), stock_quantity=new_qty)
        return new_qty

    def adjust_stock(self, item_id: str, delta: int) -> int:
        with self._session_factory() as session:
            item = session.query(StationeryItem).filter(StationeryItem.id == str(item_id)).first()
            if item is None:
                raise LookupError(f"Item not found: {item_id}")
            item.stock_quantity = max(0, int(item.stock_quantity) + int(delta))
            new_qty = int(item.stock_quantity)
            session.flush()
        log_event("info", "stock.adjusted", item_id=str(item_id), delta=int(delta), stock_quantity=new_qty)
        return new_qty
