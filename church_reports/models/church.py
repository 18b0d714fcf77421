#!/usr/bin/env python3
"""
Church operational data models (members, attendance, finance, visitors, equipment)
"""

from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, Numeric, Text, ForeignKey
from datetime import datetime
from church_reports.core.database import Base

class Department(Base):
    """Ministry department"""
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    department_type = Column(String(50), nullable=True)
    head_member_id = Column(Integer, ForeignKey("members.id"), nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

class Member(Base):
    """Church member"""
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    member_number = Column(String(20), unique=True, nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(10), nullable=True)
    marital_status = Column(String(20), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    occupation = Column(String(100), nullable=True)
    join_date = Column(Date, nullable=True)
    baptism_date = Column(Date, nullable=True)
    membership_status = Column(String(20), default="active", index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class MemberDepartment(Base):
    """Member to department assignment"""
    __tablename__ = "member_departments"

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True)

class Event(Base):
    """Service or church event"""
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(150), nullable=False)
    event_type = Column(String(50), nullable=False)
    event_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(8), nullable=True)
    expected_attendance = Column(Integer, nullable=True)

class AttendanceRecord(Base):
    """Member check-in for an event"""
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True)
    check_in_time = Column(DateTime, nullable=True)
    check_in_method = Column(String(20), default="manual")
    is_present = Column(Boolean, default=True)

class IncomeCategory(Base):
    __tablename__ = "income_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True)

class Income(Base):
    """Income transaction (tithes, offerings, donations)"""
    __tablename__ = "income"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String(30), nullable=True)
    category_id = Column(Integer, ForeignKey("income_categories.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    donor_name = Column(String(100), nullable=True)
    payment_method = Column(String(30), nullable=True)
    income_date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="verified")

class ExpenseCategory(Base):
    __tablename__ = "expense_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True)

class Expense(Base):
    """Expense transaction"""
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    transaction_id = Column(String(30), nullable=True)
    category_id = Column(Integer, ForeignKey("expense_categories.id"), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    vendor_name = Column(String(100), nullable=True)
    payment_method = Column(String(30), nullable=True)
    expense_date = Column(Date, nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="approved")

class Visitor(Base):
    """First-time or returning visitor"""
    __tablename__ = "visitors"

    id = Column(Integer, primary_key=True, index=True)
    visitor_number = Column(String(20), nullable=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(100), nullable=True)
    gender = Column(String(10), nullable=True)
    age_group = Column(String(20), nullable=True)
    visit_date = Column(Date, nullable=False, index=True)
    status = Column(String(30), default="new_visitor")
    how_heard_about_us = Column(String(100), nullable=True)

class EquipmentCategory(Base):
    __tablename__ = "equipment_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)

class Equipment(Base):
    """Inventory item"""
    __tablename__ = "equipment"

    id = Column(Integer, primary_key=True, index=True)
    equipment_code = Column(String(30), nullable=True)
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    serial_number = Column(String(100), nullable=True)
    category_id = Column(Integer, ForeignKey("equipment_categories.id"), nullable=True)
    location = Column(String(100), nullable=True)
    status = Column(String(30), default="good")
    purchase_price = Column(Numeric(12, 2), nullable=True)
    next_maintenance_date = Column(Date, nullable=True)
