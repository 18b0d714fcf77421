#!/usr/bin/env python3
"""
Report schedule management API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from church_reports.core.database import get_db
from church_reports.core.exceptions import ReportError
from church_reports.core.scheduler_background import get_runner, get_scheduler_status
from church_reports.core.security import require_permission
from church_reports.schemas.report import ReportContext
from church_reports.schemas.scheduler import (
    ManualRunResponse,
    RecentExecutionResponse,
    ReportExecutionResponse,
    ReportScheduleCreate,
    ReportScheduleResponse,
    ReportScheduleUpdate
)
from church_reports.services.audit_service import log_activity
from church_reports.services.scheduler_service import SchedulerService
from church_reports.utils.response import http_error

router = APIRouter(prefix="/report_schedules", tags=["Report Schedules"])

can_manage_reports = require_permission("reports")

@router.get("/executions/recent", response_model=List[RecentExecutionResponse])
async def get_recent_executions(
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports)
):
    """Latest executions across all schedules"""
    return SchedulerService.get_recent_executions(db)

@router.get("/scheduler/status")
async def scheduler_status(context: ReportContext = Depends(can_manage_reports)):
    """Background scheduler status"""
    return get_scheduler_status()

@router.post("/", response_model=ReportScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_report_schedule(
    request: ReportScheduleCreate,
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports)
):
    """Create a new report schedule"""
    try:
        schedule = SchedulerService.create_schedule(db, context, request)
        return SchedulerService.get_schedule(db, schedule.id)
    except ReportError as e:
        raise http_error(e)

@router.get("/", response_model=List[ReportScheduleResponse])
async def get_report_schedules(
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports)
):
    """Get all report schedules"""
    return SchedulerService.list_schedules(db)

@router.get("/{schedule_id}", response_model=ReportScheduleResponse)
async def get_report_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports)
):
    """Get a specific report schedule"""
    try:
        return SchedulerService.get_schedule(db, schedule_id)
    except ReportError as e:
        raise http_error(e)

@router.put("/{schedule_id}", response_model=ReportScheduleResponse)
async def update_report_schedule(
    schedule_id: int,
    request: ReportScheduleUpdate,
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports)
):
    """Update a report schedule"""
    try:
        SchedulerService.update_schedule(db, context, schedule_id, request)
        return SchedulerService.get_schedule(db, schedule_id)
    except ReportError as e:
        raise http_error(e)

@router.delete("/{schedule_id}")
async def delete_report_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports)
):
    """Delete a report schedule and its execution history"""
    try:
        SchedulerService.delete_schedule(db, context, schedule_id)
    except ReportError as e:
        raise http_error(e)
    return {"message": "Report schedule deleted successfully"}

@router.post("/{schedule_id}/toggle", response_model=ReportScheduleResponse)
async def toggle_report_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports)
):
    """Activate or deactivate a report schedule"""
    try:
        SchedulerService.toggle_schedule(db, context, schedule_id)
        return SchedulerService.get_schedule(db, schedule_id)
    except ReportError as e:
        raise http_error(e)

@router.get("/{schedule_id}/executions", response_model=List[ReportExecutionResponse])
async def get_schedule_executions(
    schedule_id: int,
    limit: int = 50,
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports)
):
    """Get execution history for a report schedule"""
    try:
        return SchedulerService.get_schedule_executions(db, schedule_id, limit)
    except ReportError as e:
        raise http_error(e)

@router.post("/{schedule_id}/run", response_model=ManualRunResponse)
def run_report_schedule(
    schedule_id: int,
    db: Session = Depends(get_db),
    context: ReportContext = Depends(can_manage_reports),
    runner=Depends(get_runner)
):
    """Run a report schedule now, outside the normal poll cycle"""
    try:
        execution = runner.run_one(schedule_id)
    except ReportError as e:
        raise http_error(e)

    success = execution.status == "success"
    log_activity(db, context, f"Manually ran report schedule {schedule_id}",
                 "report_executions", execution.id, {"status": execution.status})
    return ManualRunResponse(
        success=success,
        message="Report generated and delivered" if success else f"Report run failed: {execution.error_message}",
        execution=execution
    )
