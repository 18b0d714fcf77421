#!/usr/bin/env python3
"""
Root-level API routes
"""

from fastapi import APIRouter

from church_reports.core.config import settings
from church_reports.core.scheduler_background import get_scheduler_status

router = APIRouter(tags=["Root"])

@router.get("/")
async def health_check():
    """Health check endpoint"""
    return {
        "message": f"{settings.APP_TITLE} is running",
        "status": "healthy",
        "version": settings.APP_VERSION,
        "organization": settings.CHURCH_NAME,
        "scheduler_running": get_scheduler_status()["running"]
    }
