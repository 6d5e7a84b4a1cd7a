from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from quiz_api.core.settings import settings


def build_engine(url: str):
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)
    # SQLite connections are shared with Starlette's threadpool
    connect_args = {"check_same_thread": False}
    if parsed.database in (None, "", ":memory:"):
        # Use StaticPool so the same in-memory DB is reused across connections.
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def connect_db() -> None:
    """Verify the database is reachable; create missing tables if configured.

    Raises whatever the driver raises when the database cannot be reached.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    if settings.DB_AUTO_CREATE:
        from quiz_api.models import Base

        Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
