#!/usr/bin/env python3
"""
Scheduler repository for report schedules and their execution history
"""

from typing import List, Optional, Tuple
from sqlalchemy import and_, exists, func, select, update
from sqlalchemy.orm import Session, joinedload
from datetime import datetime
from church_reports.models.scheduler import ReportSchedule, ReportExecution, ExecutionStatus

RECENT_EXECUTIONS_LIMIT = 20

def create_report_schedule(
    db: Session,
    report_name: str,
    report_type: str,
    report_config: str,
    frequency: str,
    schedule_time: str,
    recipients: str,
    next_run: datetime,
    created_by: Optional[int] = None,
    is_active: bool = True
) -> ReportSchedule:
    """Create a new report schedule"""
    schedule = ReportSchedule(
        report_name=report_name,
        report_type=report_type,
        report_config=report_config,
        frequency=frequency,
        schedule_time=schedule_time,
        recipients=recipients,
        next_run=next_run,
        created_by=created_by,
        is_active=is_active
    )
    db.add(schedule)
    db.commit()
    db.refresh(schedule)
    return schedule

def get_report_schedule_by_id(db: Session, schedule_id: int) -> Optional[ReportSchedule]:
    """Get report schedule by ID"""
    return db.query(ReportSchedule).options(
        joinedload(ReportSchedule.creator)
    ).filter(ReportSchedule.id == schedule_id).first()

def get_all_report_schedules(db: Session) -> List[Tuple[ReportSchedule, int, Optional[datetime]]]:
    """Get all schedules with their execution count and last execution time"""
    stats = (
        select(
            ReportExecution.schedule_id.label("schedule_id"),
            func.count(ReportExecution.id).label("execution_count"),
            func.max(ReportExecution.executed_at).label("last_execution"),
        )
        .group_by(ReportExecution.schedule_id)
        .subquery()
    )
    rows = (
        db.query(
            ReportSchedule,
            func.coalesce(stats.c.execution_count, 0),
            stats.c.last_execution,
        )
        .options(joinedload(ReportSchedule.creator))
        .outerjoin(stats, stats.c.schedule_id == ReportSchedule.id)
        .order_by(ReportSchedule.created_at.desc(), ReportSchedule.id.desc())
        .all()
    )
    return [(schedule, int(count or 0), last_execution) for schedule, count, last_execution in rows]

def update_report_schedule(
    db: Session,
    schedule_id: int,
    **kwargs
) -> Optional[ReportSchedule]:
    """Update report schedule"""
    schedule = db.query(ReportSchedule).filter(
        ReportSchedule.id == schedule_id
    ).first()

    if schedule:
        for key, value in kwargs.items():
            if hasattr(schedule, key) and value is not None:
                setattr(schedule, key, value)
        db.commit()
        db.refresh(schedule)

    return schedule

def set_schedule_active(
    db: Session,
    schedule_id: int,
    is_active: bool,
    next_run: Optional[datetime] = None
) -> bool:
    """Targeted update of the active flag (and next run when re-activating)"""
    values = {"is_active": is_active, "updated_at": datetime.utcnow()}
    if next_run is not None:
        values["next_run"] = next_run
    result = db.execute(
        update(ReportSchedule)
        .where(ReportSchedule.id == schedule_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1

def delete_report_schedule(db: Session, schedule_id: int) -> bool:
    """Delete report schedule and, by cascade, its executions"""
    schedule = db.query(ReportSchedule).filter(
        ReportSchedule.id == schedule_id
    ).first()

    if schedule:
        db.delete(schedule)
        db.commit()
        return True
    return False

def get_due_schedules(db: Session, now: datetime) -> List[ReportSchedule]:
    """Get active schedules whose next run has passed"""
    return db.query(ReportSchedule).filter(
        ReportSchedule.is_active.is_(True),
        ReportSchedule.next_run <= now
    ).order_by(ReportSchedule.next_run, ReportSchedule.id).all()

def claim_schedule(db: Session, schedule_id: int, now: datetime) -> bool:
    """Atomically mark a schedule as in flight; False when another run holds it"""
    running = exists().where(and_(
        ReportExecution.schedule_id == schedule_id,
        ReportExecution.status == ExecutionStatus.RUNNING.value,
    ))
    result = db.execute(
        update(ReportSchedule)
        .where(
            ReportSchedule.id == schedule_id,
            ReportSchedule.claimed_at.is_(None),
            ~running,
        )
        .values(claimed_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1

def release_schedule(db: Session, schedule_id: int) -> None:
    """Clear the in-flight marker"""
    db.execute(
        update(ReportSchedule)
        .where(ReportSchedule.id == schedule_id)
        .values(claimed_at=None)
        .execution_options(synchronize_session=False)
    )
    db.commit()

def create_report_execution(
    db: Session,
    schedule_id: int,
    executed_at: datetime
) -> ReportExecution:
    """Create an execution record in the running state"""
    execution = ReportExecution(
        schedule_id=schedule_id,
        executed_at=executed_at,
        status=ExecutionStatus.RUNNING.value
    )
    db.add(execution)
    db.commit()
    db.refresh(execution)
    return execution

def finalize_report_execution(
    db: Session,
    execution_id: int,
    status: ExecutionStatus,
    duration_seconds: float,
    output_file: Optional[str] = None,
    error_message: Optional[str] = None
) -> bool:
    """Move a running execution to its terminal state; finalized records are never touched again"""
    result = db.execute(
        update(ReportExecution)
        .where(
            ReportExecution.id == execution_id,
            ReportExecution.status == ExecutionStatus.RUNNING.value,
        )
        .values(
            status=status.value,
            duration_seconds=max(duration_seconds, 0.0),
            output_file=output_file,
            error_message=error_message,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1

def reschedule_if_active(db: Session, schedule_id: int, next_run: datetime) -> bool:
    """Persist the next run unless the schedule was deactivated meanwhile"""
    result = db.execute(
        update(ReportSchedule)
        .where(ReportSchedule.id == schedule_id, ReportSchedule.is_active.is_(True))
        .values(next_run=next_run)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1

def get_execution_by_id(db: Session, execution_id: int) -> Optional[ReportExecution]:
    """Get execution record by ID"""
    return db.query(ReportExecution).filter(ReportExecution.id == execution_id).first()

def get_executions_by_schedule_id(
    db: Session,
    schedule_id: int,
    limit: int = 100
) -> List[ReportExecution]:
    """Get execution history for a schedule"""
    return db.query(ReportExecution).filter(
        ReportExecution.schedule_id == schedule_id
    ).order_by(ReportExecution.executed_at.desc(), ReportExecution.id.desc()).limit(limit).all()

def get_recent_executions(
    db: Session,
    limit: int = RECENT_EXECUTIONS_LIMIT
) -> List[Tuple[ReportExecution, str, str]]:
    """Latest executions across all schedules with schedule name and type"""
    return db.query(
        ReportExecution,
        ReportSchedule.report_name,
        ReportSchedule.report_type,
    ).join(
        ReportSchedule, ReportSchedule.id == ReportExecution.schedule_id
    ).order_by(ReportExecution.executed_at.desc(), ReportExecution.id.desc()).limit(limit).all()
