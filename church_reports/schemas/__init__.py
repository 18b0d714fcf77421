"""
Pydantic schemas for request/response validation
"""

from church_reports.schemas.user import UserLogin, UserResponse
from church_reports.schemas.auth import Token
from church_reports.schemas.report import (
    AgeGroup,
    ReportType,
    ReportFormat,
    ReportFilters,
    ReportContext,
    ReportRequest,
    ReportDataset,
    TitleMetadata,
    RenderedReport
)
from church_reports.schemas.scheduler import (
    ScheduleConfiguration,
    ReportScheduleCreate,
    ReportScheduleUpdate,
    ReportScheduleResponse,
    ReportExecutionResponse,
    RecentExecutionResponse,
    ManualRunResponse
)

__all__ = [
    "UserLogin", "UserResponse",
    "Token",
    "AgeGroup", "ReportType", "ReportFormat", "ReportFilters", "ReportContext",
    "ReportRequest", "ReportDataset", "TitleMetadata", "RenderedReport",
    "ScheduleConfiguration", "ReportScheduleCreate", "ReportScheduleUpdate",
    "ReportScheduleResponse", "ReportExecutionResponse", "RecentExecutionResponse",
    "ManualRunResponse"
]
