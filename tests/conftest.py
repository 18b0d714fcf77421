"""Shared pytest configuration and fixtures."""

import os

# Settings read the environment at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.pop("SMTP_HOST", None)

from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from church_reports.core.database import build_engine, init_database
from church_reports.models import (
    AttendanceRecord,
    Department,
    Equipment,
    EquipmentCategory,
    Event,
    Expense,
    ExpenseCategory,
    Income,
    IncomeCategory,
    Member,
    MemberDepartment,
    User,
    Visitor,
)
from church_reports.schemas.report import ReportContext

AS_OF = date(2024, 3, 10)


@pytest.fixture
def sqlite_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'church.db'}")
    assert init_database(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine) -> sessionmaker:
    return sessionmaker(bind=sqlite_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    """Create users without paying for bcrypt hashing."""

    def _make(username: str = "admin", role: str = "administrator", is_active: bool = True) -> User:
        user = User(
            username=username,
            email=f"{username}@church.test",
            hashed_password="not-a-real-hash",
            first_name=username.title(),
            last_name="Tester",
            role=role,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def admin_context() -> ReportContext:
    return ReportContext.system(as_of=AS_OF)


@pytest.fixture
def church_data(db):
    """A small congregation with two staffed departments and one empty one."""
    choir = Department(name="Choir", department_type="ministry")
    youth = Department(name="Youth Ministry", department_type="ministry")
    ushers = Department(name="Ushering", department_type="service")
    db.add_all([choir, youth, ushers])
    db.flush()

    members = {
        "alice": Member(member_number="M001", first_name="Alice", last_name="Smith", gender="female", age=30,
                        date_of_birth=date(1994, 3, 15), join_date=date(2024, 1, 10), phone="0711000001",
                        email="alice@example.com", membership_status="active"),
        "bob": Member(member_number="M002", first_name="Bob", last_name="Jones", gender="male", age=45,
                      date_of_birth=date(1979, 3, 2), join_date=date(2020, 5, 1), phone="0711000002",
                      email="bob@example.com", membership_status="active"),
        "carol": Member(member_number="M003", first_name="Carol", last_name="White", gender="female", age=16,
                        date_of_birth=date(2008, 7, 21), join_date=date(2023, 11, 20), phone="0711000003",
                        email="carol@example.com", membership_status="active"),
        "dan": Member(member_number="M004", first_name="Dan", last_name="Brown", gender="male", age=65,
                      date_of_birth=date(1959, 12, 1), join_date=date(2010, 1, 1), phone="0711000004",
                      email="dan@example.com", membership_status="inactive"),
        "eve": Member(member_number="M005", first_name="Eve", last_name="Black", gender=None, age=25,
                      date_of_birth=date(2000, 3, 30), join_date=date(2024, 2, 15), phone="0711000005",
                      email="eve_50%@example.com", membership_status="active"),
    }
    db.add_all(members.values())
    db.flush()
    choir.head_member_id = members["bob"].id

    for key, department in [("alice", choir), ("alice", youth), ("bob", choir), ("carol", youth),
                            ("dan", choir), ("eve", choir)]:
        db.add(MemberDepartment(member_id=members[key].id, department_id=department.id, is_active=True))

    service = Event(name="Sunday Service", event_type="service", event_date=date(2024, 3, 3), expected_attendance=120)
    prayer = Event(name="Prayer Meeting", event_type="prayer", event_date=date(2024, 3, 6))
    old_service = Event(name="Sunday Service", event_type="service", event_date=date(2024, 2, 25))
    db.add_all([service, prayer, old_service])
    db.flush()
    db.add_all([
        AttendanceRecord(event_id=service.id, member_id=members["alice"].id, check_in_time=datetime(2024, 3, 3, 9, 5)),
        AttendanceRecord(event_id=service.id, member_id=members["bob"].id, check_in_time=datetime(2024, 3, 3, 9, 10)),
        AttendanceRecord(event_id=prayer.id, member_id=members["carol"].id, is_present=False),
        AttendanceRecord(event_id=old_service.id, member_id=members["dan"].id, check_in_time=datetime(2023, 6, 4, 9, 0)),
    ])

    tithes = IncomeCategory(name="Tithes")
    offerings = IncomeCategory(name="Offerings")
    utilities = ExpenseCategory(name="Utilities")
    db.add_all([tithes, offerings, utilities])
    db.flush()
    db.add_all([
        Income(transaction_id="INC-1", category_id=tithes.id, amount=Decimal("500.00"), donor_name="Alice Smith",
               payment_method="mpesa", income_date=date(2024, 3, 3)),
        Income(transaction_id="INC-2", category_id=tithes.id, amount=Decimal("250.00"), donor_name="Bob Jones",
               payment_method="cash", income_date=date(2024, 3, 31)),
        Income(transaction_id="INC-3", category_id=offerings.id, amount=Decimal("80.00"), donor_name="Anonymous",
               payment_method="cash", income_date=date(2024, 3, 1)),
        Income(transaction_id="INC-4", category_id=offerings.id, amount=Decimal("999.00"), donor_name="Late Gift",
               payment_method="bank", income_date=date(2024, 4, 1)),
        Expense(transaction_id="EXP-1", category_id=utilities.id, amount=Decimal("120.50"), vendor_name="Power Co",
                payment_method="bank", expense_date=date(2024, 3, 12)),
    ])

    db.add_all([
        Visitor(visitor_number="V001", first_name="Grace", last_name="Otieno", gender="female", age_group="youth",
                visit_date=date(2024, 3, 3), status="new_visitor", how_heard_about_us="friend"),
        Visitor(visitor_number="V002", first_name="Henry", last_name="Mwangi", gender="male", age_group="adults",
                visit_date=date(2024, 3, 10), status="follow_up", how_heard_about_us="radio"),
    ])

    sound = EquipmentCategory(name="Sound")
    db.add(sound)
    db.flush()
    db.add_all([
        Equipment(equipment_code="EQ-1", name="Mixer", category_id=sound.id, location="Main Hall", status="good",
                  serial_number="MX-100", next_maintenance_date=date(2024, 3, 1)),
        Equipment(equipment_code="EQ-2", name="Projector", location="Main Hall", status="good",
                  next_maintenance_date=date(2024, 3, 20)),
        Equipment(equipment_code="EQ-3", name="Keyboard", category_id=sound.id, location="Studio", status="fair",
                  next_maintenance_date=date(2024, 8, 1)),
    ])
    db.commit()
    return {"members": members, "departments": {"choir": choir, "youth": youth, "ushers": ushers}}
