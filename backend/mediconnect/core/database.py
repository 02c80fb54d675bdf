from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from loguru import logger

from mediconnect.config import settings

def _engine_options(database_url: str) -> dict:
    if not database_url.startswith("sqlite"):
        return {"pool_pre_ping": True}

    options = {"connect_args": {"check_same_thread": False}}
    # In-memory SQLite lives as long as its connection, so share one
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options

engine = create_engine(settings.database_url, **_engine_options(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def init_db():
    """Create tables for all registered models"""
    # Register models on Base.metadata
    from mediconnect.models import db_models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
