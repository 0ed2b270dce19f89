import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str = settings.DATABASE_URL) -> Engine:
    """Create the bounded connection pool.

    ``pool_size`` keeps up to DB_MAX_IDLE_CONNS connections around, the
    overflow lets the pool grow to DB_MAX_OPEN_CONNS live connections, and
    ``pool_recycle`` drops connections that have been around longer than
    DB_MAX_IDLE_TIME.
    """
    idle = min(settings.DB_MAX_IDLE_CONNS, settings.DB_MAX_OPEN_CONNS)
    return create_engine(
        url,
        pool_size=idle,
        max_overflow=max(0, settings.DB_MAX_OPEN_CONNS - idle),
        pool_timeout=settings.DB_POOL_TIMEOUT_SECONDS,
        pool_recycle=int(settings.max_idle_seconds),
        pool_pre_ping=True,
        connect_args={"connect_timeout": settings.DB_CONNECT_TIMEOUT_SECONDS},
    )


engine = build_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ping_database(bind: Engine = engine, timeout: float = 5.0) -> None:
    """Check the pool can reach the database within ``timeout`` seconds."""
    with bind.connect() as conn:
        conn.execute(
            text("SELECT set_config('statement_timeout', :ms, true)"),
            {"ms": str(int(timeout * 1000))},
        )
        conn.execute(text("SELECT 1"))
    logger.info("database connection pool established")


def init_db(bind: Engine = engine) -> None:
    import models  # noqa: F401  registers the tables on Base.metadata

    Base.metadata.create_all(bind=bind)
