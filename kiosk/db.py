import logging
import os
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, Session

logger = logging.getLogger(__name__)

DB_USER = os.getenv("DB_USER", "app")
DB_PASS = os.getenv("DB_PASS", "app")
DB_NAME = os.getenv("DB_NAME", "appdb")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_SCHEMA = os.getenv("DB_SCHEMA", "kiosk")

# Use psycopg3; set search_path so unqualified tables use our schema.
# DATABASE_URL overrides the whole thing (e.g. sqlite for local runs).
options = f"-csearch_path={DB_SCHEMA},public"
DATABASE_URL = os.getenv("DATABASE_URL") or (
    f"postgresql+psycopg://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    f"?options={options}"
)


def make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # FastAPI runs sync endpoints in a threadpool
        connect_args["check_same_thread"] = False
    eng = create_engine(url, pool_pre_ping=True, future=True, connect_args=connect_args)
    if url.startswith("sqlite"):
        serialize_sqlite_writes(eng)
    return eng


def serialize_sqlite_writes(eng):
    """
    Start every SQLite transaction with BEGIN IMMEDIATE.
    pysqlite otherwise defers the write lock to the first INSERT, and two
    order transactions that both read stock then fail with "database is
    locked" instead of one waiting for the other.
    """
    @event.listens_for(eng, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(bind=None):
    """
    Ensure the schema exists, then create tables (idempotent).
    Called once at application startup.
    """
    bind = bind or engine
    if bind.dialect.name == "postgresql":
        with bind.begin() as conn:
            # Quote the schema to avoid edge cases with names
            conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{DB_SCHEMA}"'))
    # Import here to avoid circulars
    from .models import Base  # noqa
    Base.metadata.create_all(bind=bind)
    logger.info("database ready (%s)", bind.dialect.name)


def get_session() -> Session:
    """
    FastAPI dependency: yields a DB session, commits on success, rolls back on error.
    One session (and so one pooled connection) per request.
    """
    s: Session = SessionLocal()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
