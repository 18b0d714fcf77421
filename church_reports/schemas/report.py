#!/usr/bin/env python3
"""
Report schemas: report types, formats, typed filters, datasets and artifacts
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Any, FrozenSet, List, Literal, Mapping, Optional, Tuple

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from church_reports.core.exceptions import UnknownFormat, UnknownReportType, ValidationError
from church_reports.models.roles import ALL_PERMISSIONS, permissions_for

class ReportType(str, PyEnum):
    """Closed set of report identifiers"""
    DIRECTORY = "directory"
    NEW_MEMBERS = "new"
    BIRTHDAYS = "birthdays"
    DEPARTMENTS = "departments"
    INACTIVE = "inactive"
    ATTENDANCE = "attendance"
    FINANCIAL = "financial"
    INCOME = "income"
    EXPENSES = "expenses"
    DONORS = "donors"
    COMPARISON = "comparison"
    VISITORS = "visitors"
    EQUIPMENT = "equipment"
    EVENTS = "events"

    @classmethod
    def parse(cls, value: Any) -> "ReportType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownReportType(value)

_FORMAT_ALIASES = {
    "tabular": "csv",
    "spreadsheet": "excel",
    "xlsx": "excel",
    "document": "pdf",
    "html": "pdf",
}

class ReportFormat(str, PyEnum):
    """Output formats; tabular (csv/tsv), spreadsheet (excel) and document (pdf)"""
    CSV = "csv"
    TSV = "tsv"
    EXCEL = "excel"
    PDF = "pdf"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            alias = _FORMAT_ALIASES.get(value.strip().lower())
            if alias:
                return cls(alias)
        return None

    @classmethod
    def parse(cls, value: Any) -> "ReportFormat":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnknownFormat(value)

    @property
    def extension(self) -> str:
        return {"csv": "csv", "tsv": "tsv", "excel": "xlsx", "pdf": "html"}[self.value]

    @property
    def media_type(self) -> str:
        return {
            "csv": "text/csv; charset=utf-8",
            "tsv": "text/tab-separated-values; charset=utf-8",
            "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "pdf": "text/html; charset=utf-8",
        }[self.value]

class AgeGroup(str, PyEnum):
    CHILDREN = "children"
    TEENS = "teens"
    YOUTH = "youth"
    ADULTS = "adults"
    SENIORS = "seniors"

class ReportFilters(BaseModel):
    """Typed filter bag; unknown keys are kept aside and ignored"""

    model_config = ConfigDict(extra="allow", frozen=True)

    department: Optional[int] = None
    gender: Optional[str] = None
    status: Optional[str] = None
    age_group: Optional[AgeGroup] = None
    search: Optional[str] = None
    join_date_from: Optional[date] = None
    join_date_to: Optional[date] = None
    month: Optional[int] = Field(default=None, ge=1, le=12)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    event_type: Optional[str] = None
    category: Optional[int] = None
    payment_method: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    source: Optional[str] = None
    location: Optional[str] = None
    maintenance_due: Optional[Literal["overdue", "due_soon"]] = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("month", mode="before")
    @classmethod
    def _month_number(cls, value):
        # "03" from month pickers
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
        return value

    @property
    def ignored_keys(self) -> List[str]:
        return list(self.model_extra or {})

    @classmethod
    def from_mapping(cls, values: Optional[Mapping[str, Any]]) -> "ReportFilters":
        """Build filters from an untyped mapping (query string, stored JSON)"""
        if isinstance(values, cls):
            return values
        try:
            return cls(**dict(values or {}))
        except PydanticValidationError as e:
            raise ValidationError([
                f"filter '{'.'.join(str(part) for part in err['loc'])}': {err['msg']}"
                for err in e.errors()
            ])

    def to_mapping(self) -> dict:
        """Known filters that are set, in declaration order (extras dropped)"""
        return self.model_dump(mode="json", exclude_none=True, exclude=set(self.ignored_keys))

class ReportContext(BaseModel):
    """Explicit actor context passed to report generation and scheduled runs"""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[int] = None
    username: str = "system"
    role: str = "administrator"
    permissions: FrozenSet[str] = ALL_PERMISSIONS
    as_of: date = Field(default_factory=date.today)

    def can(self, permission: str) -> bool:
        return "admin" in self.permissions or permission in self.permissions

    @classmethod
    def for_user(cls, user, as_of: Optional[date] = None) -> "ReportContext":
        role = user.role or "member"
        return cls(
            user_id=user.id,
            username=user.username,
            role=role,
            permissions=permissions_for(role),
            as_of=as_of or date.today(),
        )

    @classmethod
    def system(cls, as_of: Optional[date] = None) -> "ReportContext":
        return cls(as_of=as_of or date.today())

class ReportRequest(BaseModel):
    """One ad-hoc report invocation"""
    report_type: ReportType
    filters: ReportFilters = Field(default_factory=ReportFilters)
    format: ReportFormat = ReportFormat.CSV
    date_range: Optional[Tuple[date, date]] = None

    @classmethod
    def build(cls, report_type: Any, report_format: Any = ReportFormat.CSV,
              filters: Optional[Mapping[str, Any]] = None,
              start: Optional[date] = None, end: Optional[date] = None) -> "ReportRequest":
        """Resolve type and format first so bad values fail before any work"""
        report_type = ReportType.parse(report_type)
        report_format = ReportFormat.parse(report_format)
        report_filters = ReportFilters.from_mapping(filters)
        date_range = None
        if start and end:
            date_range = (start, end)
        elif start or end:
            report_filters = report_filters.model_copy(update={
                "date_from": start or report_filters.date_from,
                "date_to": end or report_filters.date_to,
            })
        return cls(report_type=report_type, filters=report_filters, format=report_format, date_range=date_range)

class ReportDataset(BaseModel):
    """Materialized report rows; every row has one value per column"""

    model_config = ConfigDict(frozen=True)

    columns: Tuple[str, ...]
    rows: Tuple[Tuple[Any, ...], ...] = ()

    @model_validator(mode="after")
    def _check_row_width(self):
        width = len(self.columns)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(f"row {index} has {len(row)} values, expected {width}")
        return self

    def __len__(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        """Object-dtype frame so ints with gaps are not coerced to floats"""
        return pd.DataFrame(list(self.rows), columns=list(self.columns), dtype=object)

class TitleMetadata(BaseModel):
    """Title block for rendered reports"""
    organization: str
    title: str
    generated_at: datetime = Field(default_factory=datetime.now)
    date_range: Optional[Tuple[date, date]] = None

class RenderedReport(BaseModel):
    """Report artifact: bytes plus a suggested filename and content type"""
    content: bytes
    filename: str
    media_type: str
    format: ReportFormat
    row_count: int = 0
