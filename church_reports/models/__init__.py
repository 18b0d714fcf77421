"""
Database models
"""
from church_reports.core.database import Base
from church_reports.models.user import User
from church_reports.models.roles import UserRole
from church_reports.models.church import (
    Department,
    Member,
    MemberDepartment,
    Event,
    AttendanceRecord,
    IncomeCategory,
    Income,
    ExpenseCategory,
    Expense,
    Visitor,
    EquipmentCategory,
    Equipment
)
from church_reports.models.scheduler import (
    ReportSchedule,
    ReportExecution,
    ScheduleFrequency,
    ExecutionStatus
)
from church_reports.models.activity import ActivityLog

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Department",
    "Member",
    "MemberDepartment",
    "Event",
    "AttendanceRecord",
    "IncomeCategory",
    "Income",
    "ExpenseCategory",
    "Expense",
    "Visitor",
    "EquipmentCategory",
    "Equipment",
    "ReportSchedule",
    "ReportExecution",
    "ScheduleFrequency",
    "ExecutionStatus",
    "ActivityLog"
]
