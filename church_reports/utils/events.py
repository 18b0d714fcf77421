#!/usr/bin/env python3
"""
Application startup and shutdown event handlers
"""

import logging
import os
from church_reports.core.config import settings
from church_reports.core.database import SessionLocal, init_database
from church_reports.models.roles import UserRole
from church_reports.repositories.user_repository import create_user, get_user_count

logger = logging.getLogger(__name__)

def create_default_admin_user():
    """Create default admin user if no users exist"""
    db = SessionLocal()
    try:
        if get_user_count(db) == 0:
            create_user(
                db,
                username="admin",
                email="admin@church.local",
                password=os.getenv("DEFAULT_ADMIN_PASSWORD", "admin123"),
                first_name="System",
                last_name="Administrator",
                role=UserRole.ADMINISTRATOR.value
            )
            logger.info("✅ Default admin user created (username: admin)")
    except Exception as e:
        logger.error(f"⚠️ Error creating default user: {e}")
    finally:
        db.close()

async def startup_handler():
    """Handle application startup"""
    logger.info(f"🚀 Starting {settings.APP_TITLE}...")

    if init_database():
        logger.info("✅ Database initialization successful!")
        create_default_admin_user()
    else:
        logger.warning("⚠️ Database initialization failed - some features may not work")

    os.makedirs(settings.REPORT_OUTPUT_DIR, exist_ok=True)

    if settings.SCHEDULER_ENABLED:
        from church_reports.core.scheduler_background import start_scheduler
        start_scheduler()
        logger.info("✅ Report scheduler started")
    else:
        logger.info("Report scheduler disabled (SCHEDULER_ENABLED=false)")

async def shutdown_handler():
    """Handle application shutdown"""
    logger.info("🛑 Shutting down application...")

    from church_reports.core.scheduler_background import stop_scheduler
    stop_scheduler()
    logger.info("✅ Report scheduler stopped")
