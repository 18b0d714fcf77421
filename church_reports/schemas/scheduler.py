#!/usr/bin/env python3
"""
Scheduler schemas
"""

import json
import re
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime

from church_reports.schemas.report import ReportFilters, ReportFormat

CONFIG_SCHEMA_VERSION = 1

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

def normalize_recipients(recipients: Optional[List[str]]) -> List[str]:
    """Strip, drop blanks and de-duplicate (case-insensitive), keeping first-seen order"""
    seen = set()
    result = []
    for recipient in recipients or []:
        address = (recipient or "").strip()
        if not address or address.lower() in seen:
            continue
        seen.add(address.lower())
        result.append(address)
    return result

def split_recipient_text(value):
    # Forms post a single comma/newline separated string
    if isinstance(value, str):
        return re.split(r"[,\n;]", value)
    return value

def recipients_from_json(value: Optional[str]) -> List[str]:
    if not value:
        return []
    try:
        data = json.loads(value)
    except (TypeError, ValueError):
        # Comma separated text from older rows
        data = value.split(",")
    if isinstance(data, str):
        data = [data]
    return normalize_recipients(data)

class ScheduleConfiguration(BaseModel):
    """Versioned report configuration stored with a schedule"""
    version: int = CONFIG_SCHEMA_VERSION
    filters: Dict[str, Any] = Field(default_factory=dict)
    format: ReportFormat = ReportFormat.PDF
    include_charts: bool = False

    @field_validator("filters", mode="before")
    @classmethod
    def _filters_dict(cls, value):
        return dict(value or {})

    @classmethod
    def migrate(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """Upgrade a stored blob to the current version"""
        data = dict(data or {})
        version = data.get("version", 0)
        if version == 0:
            # Version-less blobs stored include_charts as 0/1 and format aliases
            data["include_charts"] = bool(int(data.get("include_charts") or 0))
            data["format"] = ReportFormat.parse(data.get("format") or ReportFormat.PDF.value).value
            data["filters"] = data.get("filters") or {}
            data["version"] = CONFIG_SCHEMA_VERSION
        return data

    @classmethod
    def from_json(cls, value: Optional[str]) -> "ScheduleConfiguration":
        if not value:
            return cls()
        return cls(**cls.migrate(json.loads(value)))

    def to_json(self) -> str:
        # Filter key order is preserved as given
        return json.dumps(self.model_dump(mode="json"))

    @property
    def report_filters(self) -> ReportFilters:
        return ReportFilters.from_mapping(self.filters)

class ReportScheduleCreate(BaseModel):
    """Schema for creating a report schedule"""
    report_name: str = ""
    report_type: str = ""
    frequency: str = ""
    schedule_time: str = ""
    recipients: List[str] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)
    format: str = ReportFormat.PDF.value
    include_charts: bool = False
    is_active: bool = True

    @field_validator("recipients", mode="before")
    @classmethod
    def _split_recipients(cls, value):
        return split_recipient_text(value)

class ReportScheduleUpdate(BaseModel):
    """Schema for updating a report schedule; unset fields keep their value"""
    report_name: Optional[str] = None
    report_type: Optional[str] = None
    frequency: Optional[str] = None
    schedule_time: Optional[str] = None
    recipients: Optional[List[str]] = None
    filters: Optional[Dict[str, Any]] = None
    format: Optional[str] = None
    include_charts: Optional[bool] = None
    is_active: Optional[bool] = None

    @field_validator("recipients", mode="before")
    @classmethod
    def _split_recipients(cls, value):
        return split_recipient_text(value)

class ReportExecutionResponse(BaseModel):
    """Schema for report execution response"""
    id: int
    schedule_id: int
    executed_at: datetime
    duration_seconds: Optional[float] = None
    status: str
    output_file: Optional[str] = None
    error_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class RecentExecutionResponse(ReportExecutionResponse):
    """Execution joined with its schedule's name and type"""
    report_name: str
    report_type: str

class ReportScheduleResponse(BaseModel):
    """Schema for report schedule response"""
    id: int
    report_name: str
    report_type: str
    frequency: str
    schedule_time: str
    recipients: List[str]
    configuration: ScheduleConfiguration
    is_active: bool
    next_run: Optional[datetime] = None
    created_by: Optional[int] = None
    created_by_name: Optional[str] = None
    created_at: Optional[datetime] = None
    execution_count: int = 0
    last_execution: Optional[datetime] = None

    @classmethod
    def from_schedule(cls, schedule, execution_count: int = 0,
                      last_execution: Optional[datetime] = None) -> "ReportScheduleResponse":
        return cls(
            id=schedule.id,
            report_name=schedule.report_name,
            report_type=schedule.report_type,
            frequency=schedule.frequency,
            schedule_time=schedule.schedule_time,
            recipients=recipients_from_json(schedule.recipients),
            configuration=ScheduleConfiguration.from_json(schedule.report_config),
            is_active=bool(schedule.is_active),
            next_run=schedule.next_run,
            created_by=schedule.created_by,
            created_by_name=schedule.creator.full_name if schedule.creator else None,
            created_at=schedule.created_at,
            execution_count=execution_count,
            last_execution=last_execution,
        )

class ManualRunResponse(BaseModel):
    """Result of a manual schedule run"""
    success: bool
    message: str
    execution: ReportExecutionResponse
