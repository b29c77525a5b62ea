from contextlib import contextmanager
from decimal import Decimal
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..models.base import Base
from ..models.counter import Counter
from ..models.item import StationeryItem


def _ensure_sqlite_parent(database_url: str) -> None:
    # Ensure sqlite file parent directory exists to avoid 'unable to open database file'
    if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
        db_path = database_url.split("sqlite:///")[-1]
        try:
            parent = Path(db_path).expanduser().resolve().parent
            parent.mkdir(parents=True, exist_ok=True)
        except Exception:
            # best-effort; real error will surface on connect if still invalid
            pass


def create_db_engine(database_url: str):
    _ensure_sqlite_parent(database_url)
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        # a single shared connection keeps the in-memory database alive
        return create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, future=True)


def create_session_factory(engine):
    """Return a context-manager factory: commit on success, rollback on error."""

    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def get_session():
        session = SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return get_session


def init_db(engine, session_factory, items=None) -> None:
    """Create tables, the order-number counter row and, on an empty table, the seed items."""
    Base.metadata.create_all(bind=engine)
    with session_factory() as session:
        if session.get(Counter, Counter.ORDER_NUMBER) is None:
            session.add(Counter(name=Counter.ORDER_NUMBER, sequence_value=0))
        if items and session.query(StationeryItem).count() == 0:
            for raw in items:
                session.add(
                    StationeryItem(
                        id=str(raw["id"]),
                        name=raw["name"],
                        price=Decimal(str(raw["price"])),
                        stock_quantity=int(raw.get("stock_quantity", 0)),
                    )
                )
