#!/usr/bin/env python3
"""
Audit service - records user activity events
"""

import json
import logging
from typing import Any, Dict, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from church_reports.models.activity import ActivityLog
from church_reports.schemas.report import ReportContext

logger = logging.getLogger(__name__)

def log_activity(
    db: Session,
    context: Optional[ReportContext],
    action: str,
    table_name: Optional[str] = None,
    record_id: Optional[int] = None,
    new_values: Optional[Dict[str, Any]] = None
) -> None:
    """Fire-and-forget: an audit write failure is logged, never raised"""
    entry = ActivityLog(
        user_id=context.user_id if context else None,
        action=action,
        table_name=table_name,
        record_id=record_id,
        new_values=json.dumps(new_values, default=str) if new_values is not None else None
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error writing activity log '{action}': {e}")
