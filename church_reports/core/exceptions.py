#!/usr/bin/env python3
"""
Report and scheduling error taxonomy
"""

from typing import Any, Dict, List, Optional

class ReportError(Exception):
    """Base error for report generation and scheduling"""

    status_code = 400
    code = "REPORT_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def public_message(self) -> str:
        """Message that may be shown to end users"""
        return self.message

class UnknownReportType(ReportError):
    code = "UNKNOWN_REPORT_TYPE"

    def __init__(self, report_type: Any):
        super().__init__(f"Unknown report type: {report_type}", {"report_type": str(report_type)})
        self.report_type = report_type

class UnknownFormat(ReportError):
    code = "UNKNOWN_FORMAT"

    def __init__(self, report_format: Any):
        super().__init__(f"Unknown report format: {report_format}", {"format": str(report_format)})
        self.report_format = report_format

class QueryExecutionError(ReportError):
    """Storage-layer failure; the underlying message is for logs only"""

    status_code = 500
    code = "QUERY_EXECUTION_ERROR"

    def __init__(self, detail: str):
        super().__init__(f"Query execution failed: {detail}")
        self.detail = detail

    @property
    def public_message(self) -> str:
        return "Error generating report"

class ScheduleNotFound(ReportError):
    status_code = 404
    code = "SCHEDULE_NOT_FOUND"

    def __init__(self, schedule_id: int):
        super().__init__(f"Report schedule {schedule_id} not found", {"schedule_id": schedule_id})
        self.schedule_id = schedule_id

class ScheduleBusy(ReportError):
    status_code = 409
    code = "SCHEDULE_BUSY"

    def __init__(self, schedule_id: int):
        super().__init__(f"Report schedule {schedule_id} is already running", {"schedule_id": schedule_id})
        self.schedule_id = schedule_id

class DeliveryFailure(ReportError):
    status_code = 502
    code = "DELIVERY_FAILURE"

class ValidationError(ReportError):
    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors), {"errors": errors})
        self.errors = errors

class PermissionDenied(ReportError):
    status_code = 403
    code = "PERMISSION_DENIED"
