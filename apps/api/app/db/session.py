from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from app.core.config import settings


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine with per-backend connection setup."""
    backend = make_url(database_url).get_backend_name()
    connect_args = kwargs.pop("connect_args", {})
    if backend.startswith("postgresql"):
        connect_args["options"] = "-c timezone=utc"
    elif backend == "sqlite":
        # Request sessions are used from FastAPI's threadpool
        connect_args.setdefault("check_same_thread", False)

    new_engine = create_engine(
        database_url, pool_pre_ping=True, connect_args=connect_args, **kwargs
    )

    if backend == "sqlite":
        # SQLite leaves foreign keys off unless asked per connection
        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
