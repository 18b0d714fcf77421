#!/usr/bin/env python3
"""
Scheduler models for automated report generation
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Float, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from church_reports.core.database import Base

class ScheduleFrequency(PyEnum):
    """Schedule frequency enumeration"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

class ExecutionStatus(PyEnum):
    """Execution status enumeration"""
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"

class ReportSchedule(Base):
    """Model for storing scheduled report definitions"""
    __tablename__ = "report_schedules"

    id = Column(Integer, primary_key=True, index=True)
    report_name = Column(String(255), nullable=False)
    report_type = Column(String(50), nullable=False)
    report_config = Column(Text, nullable=False)
    frequency = Column(String(20), nullable=False)
    schedule_time = Column(String(5), nullable=False)
    recipients = Column(Text, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    next_run = Column(DateTime, nullable=False, index=True)
    claimed_at = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = relationship("User")
    executions = relationship(
        "ReportExecution",
        back_populates="schedule",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ReportExecution.executed_at.desc()",
    )

class ReportExecution(Base):
    """Model for storing report execution history"""
    __tablename__ = "report_executions"

    id = Column(Integer, primary_key=True, index=True)
    schedule_id = Column(Integer, ForeignKey("report_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    executed_at = Column(DateTime, nullable=False)
    duration_seconds = Column(Float, nullable=True)
    status = Column(String(20), nullable=False, index=True)
    output_file = Column(String(500), nullable=True)
    error_message = Column(Text, nullable=True)

    schedule = relationship("ReportSchedule", back_populates="executions")
