#!/usr/bin/env python3
"""
Activity log model (audit trail)
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from datetime import datetime
from church_reports.core.database import Base

class ActivityLog(Base):
    """Model for storing user activity events"""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    action = Column(String(255), nullable=False)
    table_name = Column(String(100), nullable=True)
    record_id = Column(Integer, nullable=True)
    new_values = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
