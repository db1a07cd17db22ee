"""
Base database model and session management
"""
import os
from sqlalchemy import create_engine, text
from sqlalchemy.pool import NullPool
from sqlalchemy.orm import declarative_base, sessionmaker
from perfdash.config import get_settings
from perfdash.utils.logger import log

settings = get_settings()

# Resolve relative SQLite paths to absolute so cwd changes can't break it
_db_url = settings.database_url
if _db_url.startswith("sqlite:///") and not _db_url.startswith("sqlite:////"):
    rel_path = _db_url[len("sqlite:///"):]
    _db_url = "sqlite:///" + os.path.abspath(rel_path)

# Create database engine
if _db_url.startswith("sqlite"):
    # Local development and tests only
    engine = create_engine(
        _db_url,
        connect_args={"check_same_thread": False, "timeout": 30},
        poolclass=NullPool,
    )
else:
    # Bounded pool: db_pool_size connections total, no overflow
    engine = create_engine(
        _db_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=0,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
    )

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_connection():
    """Open one connection and run a trivial query; raises on failure."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    log.info(f"Connected to database ({engine.url.render_as_string(hide_password=True)})")


def dispose_engine():
    """Close every pooled connection. Called once at shutdown."""
    engine.dispose()
    log.info("Database connection pool closed")


def init_db():
    """Create the contract tables. Development and tests only."""
    import perfdash.models  # noqa: F401  (registers the models on Base)
    Base.metadata.create_all(bind=engine)
