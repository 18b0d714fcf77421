#!/usr/bin/env python3
"""
Report runner - executes due report schedules.

Each run claims its schedule with a conditional UPDATE before anything else,
so at most one execution of a schedule is in flight no matter how many poll
loops or workers call in. The execution record is written in the running
state before the pipeline starts and finalized exactly once afterwards.
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from church_reports.core.config import settings
from church_reports.core.database import SessionLocal
from church_reports.core.exceptions import DeliveryFailure, ScheduleBusy, ScheduleNotFound
from church_reports.models.scheduler import ExecutionStatus, ReportSchedule
from church_reports.repositories.scheduler_repository import (
    claim_schedule,
    create_report_execution,
    finalize_report_execution,
    get_due_schedules,
    get_execution_by_id,
    get_report_schedule_by_id,
    release_schedule,
    reschedule_if_active
)
from church_reports.schemas.report import RenderedReport, ReportContext, TitleMetadata
from church_reports.schemas.scheduler import ReportExecutionResponse, ScheduleConfiguration, recipients_from_json
from church_reports.services import materializer, renderer
from church_reports.services.query_builder import build_plan
from church_reports.services.schedule_clock import next_trigger

logger = logging.getLogger(__name__)

class ScheduleSnapshot:
    """Schedule fields read once at claim time"""

    def __init__(self, schedule: ReportSchedule, as_of: datetime):
        self.id = schedule.id
        self.report_name = schedule.report_name
        self.report_type = schedule.report_type
        self.frequency = schedule.frequency
        self.schedule_time = schedule.schedule_time
        self.recipients = recipients_from_json(schedule.recipients)
        self.report_config = schedule.report_config
        creator = schedule.creator
        if creator is not None and creator.is_active:
            self.context = ReportContext.for_user(creator, as_of=as_of.date())
        else:
            self.context = ReportContext.system(as_of=as_of.date())

class ReportRunner:
    """Runs scheduled reports: build, materialize, render, store, deliver"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal, notifier=None,
                 output_dir: Optional[str] = None, clock: Callable[[], datetime] = datetime.now,
                 max_workers: int = 1):
        self.session_factory = session_factory
        self.notifier = notifier
        self.output_dir = output_dir or settings.REPORT_OUTPUT_DIR
        self.clock = clock
        self.max_workers = max(1, max_workers)

    def run_due(self, now: Optional[datetime] = None) -> List[ReportExecutionResponse]:
        """Run every active schedule whose next run has passed; busy schedules are skipped"""
        now = now or self.clock()
        db = self.session_factory()
        try:
            schedule_ids = [schedule.id for schedule in get_due_schedules(db, now)]
        finally:
            db.close()

        if not schedule_ids:
            return []
        logger.info(f"Found {len(schedule_ids)} due report schedule(s)")

        if self.max_workers > 1 and len(schedule_ids) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(lambda schedule_id: self._run_safely(schedule_id, now), schedule_ids))
        else:
            results = [self._run_safely(schedule_id, now) for schedule_id in schedule_ids]
        return [result for result in results if result is not None]

    def run_one(self, schedule_id: int, now: Optional[datetime] = None) -> ReportExecutionResponse:
        """Run a schedule immediately, ignoring whether it is due"""
        result = self._execute(schedule_id, now or self.clock(), require_due=False)
        if result is None:
            raise ScheduleBusy(schedule_id)
        return result

    def _run_safely(self, schedule_id: int, now: datetime) -> Optional[ReportExecutionResponse]:
        # One failing schedule never stops the rest of the batch
        try:
            return self._execute(schedule_id, now, require_due=True)
        except Exception:
            logger.exception(f"Unexpected error running report schedule {schedule_id}")
            return None

    def _execute(self, schedule_id: int, now: datetime, require_due: bool) -> Optional[ReportExecutionResponse]:
        db = self.session_factory()
        try:
            schedule = get_report_schedule_by_id(db, schedule_id)
            if not schedule:
                raise ScheduleNotFound(schedule_id)

            if not claim_schedule(db, schedule_id, now):
                logger.info(f"Report schedule {schedule_id} is already running, skipping")
                return None

            try:
                # Another poller may have finished this run between the due query and the claim
                if require_due and (not schedule.is_active or schedule.next_run > now):
                    return None
                return self._run_claimed(db, ScheduleSnapshot(schedule, now), now)
            finally:
                release_schedule(db, schedule_id)
        finally:
            db.close()

    def _run_claimed(self, db: Session, snapshot: ScheduleSnapshot, now: datetime) -> ReportExecutionResponse:
        execution = create_report_execution(db, snapshot.id, now)
        logger.info(f"Executing scheduled report: {snapshot.report_name} (ID: {snapshot.id})")
        started = time.perf_counter()

        output_file = None
        error_message = None
        try:
            output_file = self._run_pipeline(db, snapshot, now)
            status = ExecutionStatus.SUCCESS
            logger.info(f"Successfully executed scheduled report {snapshot.report_name}")
        except Exception as e:
            db.rollback()
            status = ExecutionStatus.FAILED
            error_message = str(e) or e.__class__.__name__
            logger.error(f"Error executing scheduled report {snapshot.report_name}: {error_message}")

        finalize_report_execution(
            db,
            execution.id,
            status,
            duration_seconds=time.perf_counter() - started,
            output_file=output_file,
            error_message=error_message
        )

        # Never earlier than the poll instant, or the schedule stays due
        reference = max(now, self.clock())
        try:
            next_run = next_trigger(snapshot.frequency, snapshot.schedule_time, reference)
        except ValueError as e:
            logger.warning(f"Report schedule {snapshot.id} has an unusable time of day ({e}), retrying in one day")
            next_run = reference + timedelta(days=1)
        if not reschedule_if_active(db, snapshot.id, next_run):
            logger.info(f"Report schedule {snapshot.id} was deactivated during its run; next run not updated")

        return ReportExecutionResponse.model_validate(get_execution_by_id(db, execution.id))

    def _run_pipeline(self, db: Session, snapshot: ScheduleSnapshot, now: datetime) -> str:
        """Build, materialize, render, store and deliver; returns the artifact path"""
        configuration = ScheduleConfiguration.from_json(snapshot.report_config)
        plan = build_plan(snapshot.report_type, configuration.report_filters, snapshot.context)
        dataset = materializer.execute(db, plan)
        # No transaction stays open across file or notifier I/O
        db.commit()

        meta = TitleMetadata(
            organization=settings.CHURCH_NAME,
            title=plan.title,
            generated_at=now,
            date_range=plan.date_range,
        )
        artifact = renderer.render(dataset, configuration.format, meta)
        output_file = self._store_artifact(snapshot.id, artifact)

        if self.notifier is not None:
            subject = f"{snapshot.report_name} - {settings.CHURCH_NAME}"
            body = (
                f"Please find attached the scheduled {plan.title} "
                f"generated on {now.strftime('%B %d, %Y at %I:%M %p')}.\n\n"
                f"Rows: {artifact.row_count}\n"
            )
            if not self.notifier.send(snapshot.recipients, subject, body, artifact):
                raise DeliveryFailure(
                    f"Failed to deliver report to {len(snapshot.recipients)} recipient(s)"
                )
        return output_file

    def _store_artifact(self, schedule_id: int, artifact: RenderedReport) -> str:
        directory = os.path.join(self.output_dir, str(schedule_id))
        os.makedirs(directory, exist_ok=True)
        path = os.path.join(directory, artifact.filename)
        with open(path, "wb") as f:
            f.write(artifact.content)
        return path
