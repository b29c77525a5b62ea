from typing import Any, Dict


def _iso(value: Any):
    return value.isoformat() if hasattr(value, "isoformat") else value


def to_item_dto(row: Any) -> Dict:
    return {
        "id": str(getattr(row, "id", "")),
        "name": getattr(row, "name", None),
        "price": float(getattr(row, "price", 0) or 0),
        "stock_quantity": int(getattr(row, "stock_quantity", 0) or 0),
        "created_at": _iso(getattr(row, "created_at", None)),
    }


def to_booking_dto(row: Any) -> Dict:
    payment_amount = getattr(row, "payment_amount", None)
    return {
        "id": getattr(row, "id", None),
        "order_number": getattr(row, "order_number", None),
        "customer_name": getattr(row, "customer_name", None),
        "date": getattr(row, "date", None),
        "time_slot": getattr(row, "time_slot", None),
        "items": list(getattr(row, "items", None) or []),
        "total_cost": float(getattr(row, "total_cost", 0) or 0),
        "order_status": getattr(row, "order_status", None) or "pending",
        "payment_method": getattr(row, "payment_method", None),
        "payment_status": getattr(row, "payment_status", None),
        "payment_id": getattr(row, "payment_id", None),
        "payment_amount": float(payment_amount) if payment_amount is not None else None,
        "payment_currency": getattr(row, "payment_currency", None),
        "payment_completed_at": _iso(getattr(row, "payment_completed_at", None)),
        "created_at": _iso(getattr(row, "created_at", None)),
    }
