import time

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.stylehub.core.config import settings
from app.stylehub.core.db_timing import add_db_time, is_tracking

# seconds a SQLite writer waits on a concurrent checkout before "database is locked"
SQLITE_BUSY_TIMEOUT = 5


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        built = create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT},
        )

        @event.listens_for(built, "connect")
        def _sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    else:
        built = create_engine(database_url, future=True, pool_pre_ping=True)

    @event.listens_for(built, "before_cursor_execute")
    def _start_query_timer(conn, cursor, statement, parameters, context, executemany):
        if is_tracking():
            conn.info["query_start_time"] = time.perf_counter()

    @event.listens_for(built, "after_cursor_execute")
    def _stop_query_timer(conn, cursor, statement, parameters, context, executemany):
        started = conn.info.pop("query_start_time", None)
        if started is not None and is_tracking():
            add_db_time((time.perf_counter() - started) * 1000)

    return built


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
