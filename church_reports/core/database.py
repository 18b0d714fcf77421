#!/usr/bin/env python3
"""
Database configuration and session management
"""

import logging
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from church_reports.core.config import settings

logger = logging.getLogger(__name__)

def build_engine(url: str) -> Engine:
    """Create an engine; SQLite connections get foreign keys enabled"""
    if url.startswith("sqlite"):
        engine = create_engine(url, echo=False, connect_args={"check_same_thread": False})

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine
    return create_engine(url, echo=False, pool_pre_ping=True)

# Create engine
try:
    engine = build_engine(settings.DATABASE_URL)
except Exception as e:
    logger.error(f"❌ Error connecting to database: {e}")
    logger.error("Please ensure the database server is running, the database exists "
                 "and the connection credentials are correct")
    raise

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    """Get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_database(bind: Engine = None):
    """Initialize database tables"""
    bind = bind or engine
    try:
        # Test connection
        with bind.connect():
            logger.info("✅ Database connection successful!")

        # Import all models to ensure they're registered
        from church_reports.models import user, church, scheduler, activity  # noqa: F401

        # Create tables
        Base.metadata.create_all(bind=bind)
        logger.info("✅ Database tables verified/created successfully!")
        return True
    except Exception as e:
        logger.error(f"❌ Error initializing database: {e}")
        return False
