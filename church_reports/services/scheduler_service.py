#!/usr/bin/env python3
"""
Scheduler service - handles report schedule management
"""

import json
from typing import List, Optional
from sqlalchemy.orm import Session
from datetime import datetime

from church_reports.core.exceptions import ScheduleNotFound, UnknownFormat, UnknownReportType, ValidationError
from church_reports.repositories.scheduler_repository import (
    create_report_schedule,
    get_report_schedule_by_id,
    get_all_report_schedules,
    update_report_schedule,
    set_schedule_active,
    delete_report_schedule,
    get_executions_by_schedule_id,
    get_recent_executions
)
from church_reports.models.scheduler import ReportSchedule, ScheduleFrequency
from church_reports.schemas.report import ReportContext, ReportFilters, ReportFormat, ReportType
from church_reports.schemas.scheduler import (
    EMAIL_PATTERN,
    RecentExecutionResponse,
    ReportExecutionResponse,
    ReportScheduleCreate,
    ReportScheduleResponse,
    ReportScheduleUpdate,
    ScheduleConfiguration,
    normalize_recipients,
    recipients_from_json
)
from church_reports.services.audit_service import log_activity
from church_reports.services.schedule_clock import next_trigger, parse_time_of_day

FREQUENCIES = [frequency.value for frequency in ScheduleFrequency]

def validate_schedule_fields(report_name: str, report_type: str, frequency: str,
                             schedule_time: str, recipients: List[str], report_format: str,
                             filters: Optional[dict] = None) -> List[str]:
    """Collect every problem with a schedule definition instead of stopping at the first"""
    errors = []
    if not (report_name or "").strip():
        errors.append("report_name is required")

    if not (report_type or "").strip():
        errors.append("report_type is required")
    else:
        try:
            ReportType.parse(report_type)
        except UnknownReportType:
            errors.append(f"report_type '{report_type}' is not a known report")

    if not (frequency or "").strip():
        errors.append("frequency is required")
    elif frequency.strip().lower() not in FREQUENCIES:
        errors.append(f"frequency must be one of: {', '.join(FREQUENCIES)}")

    if not (schedule_time or "").strip():
        errors.append("schedule_time is required")
    else:
        try:
            parse_time_of_day(schedule_time)
        except ValueError:
            errors.append("schedule_time must be HH:MM")

    if not recipients:
        errors.append("at least one recipient is required")
    else:
        invalid = [address for address in recipients if not EMAIL_PATTERN.match(address)]
        if invalid:
            errors.append(f"invalid recipient address: {', '.join(invalid)}")

    try:
        ReportFormat.parse(report_format)
    except UnknownFormat:
        errors.append(f"format '{report_format}' is not supported")

    try:
        ReportFilters.from_mapping(filters)
    except ValidationError as e:
        errors.extend(e.errors)

    return errors

class SchedulerService:
    """Service for managing report schedules"""

    @staticmethod
    def _require(db: Session, schedule_id: int) -> ReportSchedule:
        schedule = get_report_schedule_by_id(db, schedule_id)
        if not schedule:
            raise ScheduleNotFound(schedule_id)
        return schedule

    @staticmethod
    def create_schedule(db: Session, context: ReportContext, data: ReportScheduleCreate,
                        now: Optional[datetime] = None) -> ReportSchedule:
        """Create a new report schedule; next run is computed from the clock"""
        recipients = normalize_recipients(data.recipients)
        errors = validate_schedule_fields(
            data.report_name, data.report_type, data.frequency,
            data.schedule_time, recipients, data.format, data.filters
        )
        if errors:
            raise ValidationError(errors)

        frequency = data.frequency.strip().lower()
        schedule_time = parse_time_of_day(data.schedule_time).strftime("%H:%M")
        configuration = ScheduleConfiguration(
            filters=data.filters,
            format=ReportFormat.parse(data.format),
            include_charts=data.include_charts,
        )

        schedule = create_report_schedule(
            db=db,
            report_name=data.report_name.strip(),
            report_type=ReportType.parse(data.report_type).value,
            report_config=configuration.to_json(),
            frequency=frequency,
            schedule_time=schedule_time,
            recipients=json.dumps(recipients),
            next_run=next_trigger(frequency, schedule_time, now or datetime.now()),
            created_by=context.user_id,
            is_active=data.is_active
        )
        log_activity(db, context, f"Created report schedule: {schedule.report_name}",
                     "report_schedules", schedule.id, {
                         "report_type": schedule.report_type,
                         "frequency": schedule.frequency,
                         "schedule_time": schedule.schedule_time,
                     })
        return schedule

    @staticmethod
    def get_schedule(db: Session, schedule_id: int) -> ReportScheduleResponse:
        """Get a report schedule by ID"""
        schedule = SchedulerService._require(db, schedule_id)
        executions = get_executions_by_schedule_id(db, schedule_id, limit=1)
        count = len(schedule.executions)
        return ReportScheduleResponse.from_schedule(
            schedule, count, executions[0].executed_at if executions else None
        )

    @staticmethod
    def list_schedules(db: Session) -> List[ReportScheduleResponse]:
        """All schedules with execution statistics"""
        return [
            ReportScheduleResponse.from_schedule(schedule, count, last_execution)
            for schedule, count, last_execution in get_all_report_schedules(db)
        ]

    @staticmethod
    def update_schedule(db: Session, context: ReportContext, schedule_id: int,
                        data: ReportScheduleUpdate, now: Optional[datetime] = None) -> ReportSchedule:
        """Update a report schedule; next run is recomputed"""
        schedule = SchedulerService._require(db, schedule_id)
        configuration = ScheduleConfiguration.from_json(schedule.report_config)

        report_name = data.report_name if data.report_name is not None else schedule.report_name
        report_type = data.report_type if data.report_type is not None else schedule.report_type
        frequency = data.frequency if data.frequency is not None else schedule.frequency
        schedule_time = data.schedule_time if data.schedule_time is not None else schedule.schedule_time
        recipients = normalize_recipients(
            data.recipients if data.recipients is not None else recipients_from_json(schedule.recipients)
        )
        filters = data.filters if data.filters is not None else configuration.filters
        report_format = data.format if data.format is not None else configuration.format.value
        include_charts = data.include_charts if data.include_charts is not None else configuration.include_charts

        errors = validate_schedule_fields(
            report_name, report_type, frequency, schedule_time, recipients, report_format, filters
        )
        if errors:
            raise ValidationError(errors)

        frequency = frequency.strip().lower()
        schedule_time = parse_time_of_day(schedule_time).strftime("%H:%M")
        configuration = ScheduleConfiguration(
            filters=filters,
            format=ReportFormat.parse(report_format),
            include_charts=include_charts,
        )

        schedule = update_report_schedule(
            db=db,
            schedule_id=schedule_id,
            report_name=report_name.strip(),
            report_type=ReportType.parse(report_type).value,
            report_config=configuration.to_json(),
            frequency=frequency,
            schedule_time=schedule_time,
            recipients=json.dumps(recipients),
            is_active=data.is_active,
            next_run=next_trigger(frequency, schedule_time, now or datetime.now())
        )
        log_activity(db, context, f"Updated report schedule: {schedule.report_name}",
                     "report_schedules", schedule.id, data.model_dump(exclude_none=True))
        return schedule

    @staticmethod
    def toggle_schedule(db: Session, context: ReportContext, schedule_id: int,
                        now: Optional[datetime] = None) -> ReportSchedule:
        """Flip the active flag without touching any other field"""
        schedule = SchedulerService._require(db, schedule_id)
        is_active = not schedule.is_active
        next_run = None
        if is_active:
            # A schedule that sat inactive must not fire for runs it missed
            next_run = next_trigger(schedule.frequency, schedule.schedule_time, now or datetime.now())

        set_schedule_active(db, schedule_id, is_active, next_run)
        db.expire(schedule)
        status = "activated" if is_active else "deactivated"
        log_activity(db, context, f"Report schedule {status}: {schedule.report_name}",
                     "report_schedules", schedule_id, {"is_active": is_active})
        return SchedulerService._require(db, schedule_id)

    @staticmethod
    def delete_schedule(db: Session, context: ReportContext, schedule_id: int) -> bool:
        """Delete a report schedule and its execution history"""
        schedule = SchedulerService._require(db, schedule_id)
        report_name = schedule.report_name
        deleted = delete_report_schedule(db, schedule_id)
        if deleted:
            log_activity(db, context, f"Deleted report schedule: {report_name}",
                         "report_schedules", schedule_id)
        return deleted

    @staticmethod
    def get_schedule_executions(db: Session, schedule_id: int,
                                limit: int = 50) -> List[ReportExecutionResponse]:
        """Get execution history for a schedule, newest first"""
        SchedulerService._require(db, schedule_id)
        return [
            ReportExecutionResponse.model_validate(execution)
            for execution in get_executions_by_schedule_id(db, schedule_id, limit)
        ]

    @staticmethod
    def get_recent_executions(db: Session) -> List[RecentExecutionResponse]:
        """Latest executions across every schedule"""
        return [
            RecentExecutionResponse(
                **ReportExecutionResponse.model_validate(execution).model_dump(),
                report_name=report_name,
                report_type=report_type,
            )
            for execution, report_name, report_type in get_recent_executions(db)
        ]
