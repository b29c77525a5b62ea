"""Stationery pickup store: storefront, booking API and admin panel."""

from __future__ import annotations

from typing import Dict, Optional

from flask import Flask

from common.db.session import create_db_engine, create_session_factory, init_db
from common.services.booking_service import BookingOrchestrator
from common.services.catalog_service import SqlItemCatalog
from common.services.demo_store import DEMO_ITEMS, DemoDataStore
from common.services.logging import log_event, set_log_level
from common.services.order_numbers import CounterOrderNumbers, RandomOrderNumbers, SqlSequenceCounter
from common.services.order_service import SqlBookingStore
from common.services.rush_status import RushStatusResolver, SqlRushStatusStore
from common.services.stock_ledger import SqlStockLedger
from config import StoreConfig
from routes import admin, api, user
from services import AdminAuthenticator, RazorpayGateway


def build_components(config: StoreConfig, store: Optional[DemoDataStore] = None) -> Dict:
    """Pick the backing stores once, from configuration, and wire the services."""
    app_cfg = config.app
    if store is not None or app_cfg.demo_mode:
        store = store or DemoDataStore()
        catalog = ledger = bookings = rush_store = counter = store
        log_event("info", "app.backend", backend="demo")
    else:
        engine = create_db_engine(app_cfg.database_url)
        session_factory = create_session_factory(engine)
        init_db(engine, session_factory, items=DEMO_ITEMS)
        catalog = SqlItemCatalog(session_factory)
        ledger = SqlStockLedger(session_factory)
        bookings = SqlBookingStore(session_factory)
        rush_store = SqlRushStatusStore(session_factory)
        counter = SqlSequenceCounter(session_factory)
        log_event("info", "app.backend", backend="sql", database_url=app_cfg.database_url.split("@")[-1])

    if app_cfg.order_number_strategy == "counter":
        order_numbers = CounterOrderNumbers(counter)
    else:
        order_numbers = RandomOrderNumbers()

    return {
        "catalog": catalog,
        "ledger": ledger,
        "bookings": bookings,
        "rush": RushStatusResolver(
            rush_store,
            opening_hour=app_cfg.opening_hour,
            closing_hour=app_cfg.closing_hour,
            lunch_hours=app_cfg.lunch_hours,
        ),
        "orchestrator": BookingOrchestrator(
            catalog=catalog,
            ledger=ledger,
            bookings=bookings,
            order_numbers=order_numbers,
            currency=app_cfg.currency,
        ),
        "payments": RazorpayGateway(config.razorpay_key_id, config.razorpay_key_secret),
        "auth": AdminAuthenticator(config.admin_email, config.admin_password, config.jwt_secret),
    }


def create_app(config: Optional[StoreConfig] = None, store: Optional[DemoDataStore] = None) -> Flask:
    config = config or StoreConfig.load()
    set_log_level(config.app.log_level)
    app = Flask(__name__)
    app.config["SECRET_KEY"] = config.secret_key
    app.config["STORE_CONFIG"] = config
    app.extensions["store_components"] = build_components(config, store)

    app.register_blueprint(user.user_bp)
    app.register_blueprint(api.api_bp)
    app.register_blueprint(admin.admin_bp)

    return app


def main() -> None:
    app = create_app()
    app.run(host="0.0.0.0", port=5000, debug=False)


if __name__ == "__main__":
    main()
