"""
Database engine and session management.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from salon.core.config import settings

Base = declarative_base()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """
    Builds an engine for `url`.

    On SQLite, transactions started with the `sqlite_begin="IMMEDIATE"`
    execution option take the write lock up front (see `begin_locked`);
    pysqlite would otherwise defer BEGIN until the first INSERT, and two
    bookings could both read the same free slot.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo, pool_pre_ping=True, pool_size=10, max_overflow=20)

    engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False, "timeout": 30})

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # hand transaction control to the "begin" hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        # readers must not block the booking writer
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get("sqlite_begin", "")
        conn.exec_driver_sql(f"BEGIN {mode}".strip())

    return engine


def begin_locked(db: Session) -> None:
    """
    Starts a fresh transaction that serializes with other writers: BEGIN
    IMMEDIATE on SQLite. Other engines rely on row locks taken inside the
    transaction (SELECT ... FOR UPDATE).
    """
    if db.in_transaction():
        # end the read transaction the session auto-began
        db.commit()
    db.connection(execution_options={"sqlite_begin": "IMMEDIATE"})


engine = create_db_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = None):
    # models must be imported so their tables are registered on Base
    from salon.models import db_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
