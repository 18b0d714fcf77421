"""Tests for the report query builder and dataset materializer."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.dialects import mysql

from church_reports.core.exceptions import PermissionDenied, QueryExecutionError, UnknownReportType, ValidationError
from church_reports.models import AttendanceRecord, Event, Income, MemberDepartment
from church_reports.schemas.report import ReportContext, ReportFilters, ReportType
from church_reports.services import materializer
from church_reports.services.query_builder import REPORT_REGISTRY, build_plan

from conftest import AS_OF


def _rows(db, report_type, filters=None, context=None, date_range=None):
    context = context or ReportContext.system(as_of=AS_OF)
    return materializer.execute(db, build_plan(report_type, filters, context, date_range))


def _column(dataset, label):
    index = dataset.columns.index(label)
    return [row[index] for row in dataset.rows]


class TestBuildPlan:
    def test_every_report_type_is_registered(self):
        assert set(REPORT_REGISTRY) == set(ReportType)

    @pytest.mark.parametrize("report_type", [report_type.value for report_type in ReportType])
    def test_plan_is_deterministic(self, report_type, admin_context):
        filters = {"search": "smith", "gender": "female", "month": "03"}
        first = build_plan(report_type, filters, admin_context)
        second = build_plan(report_type, dict(filters), admin_context)
        assert first == second
        assert first.sql == second.sql
        assert first.params == second.params

    def test_report_type_is_normalised(self, admin_context):
        assert build_plan("DIRECTORY ", {}, admin_context).report_type == ReportType.DIRECTORY

    @pytest.mark.parametrize("report_type", ["sermons", "", None])
    def test_unknown_report_type_fails(self, report_type, admin_context):
        with pytest.raises(UnknownReportType):
            build_plan(report_type, {}, admin_context)

    def test_unrecognised_filter_keys_are_ignored(self, admin_context):
        plain = build_plan("directory", {}, admin_context)
        extra = build_plan("directory", {"favourite_hymn": "Amazing Grace"}, admin_context)
        assert plain.sql == extra.sql
        assert ReportFilters.from_mapping({"favourite_hymn": "x"}).ignored_keys == ["favourite_hymn"]

    def test_invalid_filter_value_is_a_validation_error(self, admin_context):
        with pytest.raises(ValidationError) as excinfo:
            build_plan("birthdays", {"month": "13"}, admin_context)
        assert "month" in excinfo.value.errors[0]

    def test_missing_permission_is_rejected(self):
        context = ReportContext(role="finance_officer", permissions=frozenset({"finance", "reports"}), as_of=AS_OF)
        with pytest.raises(PermissionDenied):
            build_plan("directory", {}, context)
        assert build_plan("income", {}, context).title == "Income Report"

    def test_period_reports_default_to_current_month(self, admin_context):
        plan = build_plan("financial", {}, admin_context)
        assert plan.date_range == (date(2024, 3, 1), date(2024, 3, 31))
        assert build_plan("directory", {}, admin_context).date_range is None

    def test_explicit_date_range_wins(self, admin_context):
        plan = build_plan("income", {"date_from": "2024-01-01"}, admin_context, (date(2024, 2, 1), date(2024, 2, 29)))
        assert plan.date_range == (date(2024, 2, 1), date(2024, 2, 29))

    def test_plan_parameters_are_bound_not_inlined(self, admin_context):
        plan = build_plan("directory", {"search": "o'brien"}, admin_context)
        assert "o'brien" not in plan.sql
        assert "%o'brien%" in plan.params

    def test_mysql_separator_is_a_string_literal(self, admin_context):
        sql, params = build_plan("directory", {}, admin_context).compile(mysql.dialect())
        assert "SEPARATOR ', '" in sql
        assert ", " not in params


class TestMemberReports:
    def test_directory_defaults_to_active_members_by_last_name(self, db, church_data):
        dataset = _rows(db, "directory")
        assert _column(dataset, "Full Name") == ["Eve Black", "Bob Jones", "Alice Smith", "Carol White"]

    def test_directory_status_all_includes_inactive(self, db, church_data):
        dataset = _rows(db, "directory", {"status": "all"})
        assert len(dataset) == 5

    def test_directory_department_filter_keeps_all_department_names(self, db, church_data):
        youth = church_data["departments"]["youth"]
        dataset = _rows(db, "directory", {"department": youth.id})
        assert _column(dataset, "Full Name") == ["Alice Smith", "Carol White"]
        alice_departments = _column(dataset, "Departments")[0]
        assert sorted(alice_departments.split(", ")) == ["Choir", "Youth Ministry"]

    def test_duplicate_memberships_list_a_department_once(self, db, church_data):
        alice = church_data["members"]["alice"]
        choir = church_data["departments"]["choir"]
        db.add(MemberDepartment(member_id=alice.id, department_id=choir.id, is_active=True))
        db.commit()
        dataset = _rows(db, "directory", {"search": "alice"})
        assert sorted(_column(dataset, "Departments")[0].split(", ")) == ["Choir", "Youth Ministry"]

    def test_search_is_case_insensitive_across_name_phone_email(self, db, church_data):
        assert _column(_rows(db, "directory", {"search": "SMI"}), "Full Name") == ["Alice Smith"]
        assert _column(_rows(db, "directory", {"search": "0711000002"}), "Full Name") == ["Bob Jones"]

    def test_search_wildcards_are_literal(self, db, church_data):
        assert _column(_rows(db, "directory", {"search": "50%"}), "Full Name") == ["Eve Black"]
        assert len(_rows(db, "directory", {"search": "5_%"})) == 0

    def test_age_group_filter(self, db, church_data):
        dataset = _rows(db, "directory", {"age_group": "youth"})
        assert _column(dataset, "Full Name") == ["Eve Black", "Alice Smith"]

    def test_join_date_range_is_inclusive(self, db, church_data):
        dataset = _rows(db, "directory", {"join_date_from": "2024-01-10", "join_date_to": "2024-02-15"})
        assert _column(dataset, "Full Name") == ["Eve Black", "Alice Smith"]

    def test_new_members_joined_within_three_months(self, db, church_data):
        dataset = _rows(db, "new")
        assert _column(dataset, "Full Name") == ["Eve Black", "Alice Smith"]

    def test_birthdays_for_march_ignore_year(self, db, church_data):
        dataset = _rows(db, "birthdays", {"month": "03"})
        assert _column(dataset, "Full Name") == ["Bob Jones", "Alice Smith", "Eve Black"]
        assert all(value.month == 3 for value in _column(dataset, "Date of Birth"))

    def test_birthdays_default_to_reference_month(self, db, church_data):
        july = ReportContext.system(as_of=date(2024, 7, 1))
        dataset = _rows(db, "birthdays", context=july)
        assert _column(dataset, "Full Name") == ["Carol White"]

    def test_inactive_members_include_last_attendance(self, db, church_data):
        dataset = _rows(db, "inactive", {"status": "active"})
        assert _column(dataset, "Full Name") == ["Dan Brown"]
        assert _column(dataset, "Last Attendance")[0] is not None


class TestDepartmentAnalysis:
    def test_gender_counts_never_exceed_total(self, db, church_data):
        dataset = _rows(db, "departments")
        totals = _column(dataset, "Total Members")
        males = _column(dataset, "Male")
        females = _column(dataset, "Female")
        for total, male, female in zip(totals, males, females):
            assert male + female <= total

    def test_one_row_per_department_ordered_by_size(self, db, church_data):
        dataset = _rows(db, "departments")
        assert _column(dataset, "Department") == ["Choir", "Youth Ministry", "Ushering"]
        assert _column(dataset, "Total Members") == [3, 2, 0]
        assert _column(dataset, "Department Head")[0] == "Bob Jones"

    def test_member_filters_are_ignored(self, db, church_data):
        plain = _rows(db, "departments")
        filtered = _rows(db, "departments", {"gender": "male", "search": "bob"})
        assert plain == filtered


class TestOtherReports:
    def test_attendance_summary_within_period(self, db, church_data):
        dataset = _rows(db, "attendance")
        assert _column(dataset, "Event") == ["Prayer Meeting", "Sunday Service"]
        assert _column(dataset, "Present") == [0, 2]

    def test_attendance_event_type_filter(self, db, church_data):
        dataset = _rows(db, "attendance", {"event_type": "service"}, date_range=(date(2024, 2, 1), date(2024, 3, 31)))
        assert _column(dataset, "Event Date") == [date(2024, 3, 3), date(2024, 2, 25)]

    def test_financial_summary_groups_by_category(self, db, church_data):
        dataset = _rows(db, "financial")
        summary = {(row[0], row[1]): (row[2], row[3]) for row in dataset.rows}
        assert summary[("Income", "Tithes")] == (2, Decimal("750.00"))
        assert summary[("Income", "Offerings")] == (1, Decimal("80.00"))
        assert summary[("Expense", "Utilities")] == (1, Decimal("120.50"))
        assert _column(dataset, "Type") == ["Income", "Income", "Expense"]

    def test_income_amount_and_payment_filters(self, db, church_data):
        dataset = _rows(db, "income", {"payment_method": "cash", "min_amount": "100"})
        assert _column(dataset, "Transaction #") == ["INC-2"]

    def test_visitor_filters(self, db, church_data):
        assert _column(_rows(db, "visitors", {"source": "radio"}), "Name") == ["Henry Mwangi"]
        assert _column(_rows(db, "visitors"), "Visitor #") == ["V002", "V001"]

    def test_equipment_maintenance_due(self, db, church_data):
        overdue = _rows(db, "equipment", {"maintenance_due": "overdue"})
        assert _column(overdue, "Equipment") == ["Mixer"]
        due_soon = _rows(db, "equipment", {"maintenance_due": "due_soon"})
        assert _column(due_soon, "Equipment") == ["Projector"]
        everything = _rows(db, "equipment")
        assert dict(zip(_column(everything, "Equipment"), _column(everything, "Maintenance Status"))) == {
            "Keyboard": "Up to Date",
            "Mixer": "Overdue",
            "Projector": "Due This Month",
        }

    def test_equipment_search_covers_serial_number(self, db, church_data):
        assert _column(_rows(db, "equipment", {"search": "mx-1"}), "Equipment") == ["Mixer"]


class TestFinanceAnalysis:
    def test_donors_ranked_by_total_within_period(self, db, church_data):
        dataset = _rows(db, "donors")
        assert _column(dataset, "Donor") == ["Alice Smith", "Bob Jones", "Anonymous"]
        assert _column(dataset, "Total Donated") == [Decimal("500.00"), Decimal("250.00"), Decimal("80.00")]
        assert _column(dataset, "Categories") == ["Tithes", "Tithes", "Offerings"]

    def test_donor_totals_skip_unverified_gifts_and_repeat_categories(self, db, church_data):
        tithes_id = db.query(Income).filter(Income.transaction_id == "INC-1").one().category_id
        offerings_id = db.query(Income).filter(Income.transaction_id == "INC-3").one().category_id
        db.add_all([
            Income(transaction_id="INC-5", category_id=tithes_id, amount=Decimal("100.00"),
                   donor_name="Alice Smith", income_date=date(2024, 3, 10)),
            Income(transaction_id="INC-6", category_id=offerings_id, amount=Decimal("50.00"),
                   donor_name="Alice Smith", income_date=date(2024, 3, 5)),
            Income(transaction_id="INC-7", category_id=tithes_id, amount=Decimal("1000.00"),
                   donor_name="Bob Jones", income_date=date(2024, 3, 5), status="pending"),
        ])
        db.commit()

        dataset = _rows(db, "donors")
        alice = dict(zip(dataset.columns, dataset.rows[0]))
        assert alice["Donor"] == "Alice Smith"
        assert alice["Donations"] == 3
        assert alice["Total Donated"] == Decimal("650.00")
        assert alice["First Donation"] == date(2024, 3, 3)
        assert alice["Last Donation"] == date(2024, 3, 10)
        assert sorted(alice["Categories"].split(", ")) == ["Offerings", "Tithes"]
        assert _column(dataset, "Total Donated")[1] == Decimal("250.00")

    def test_donor_search(self, db, church_data):
        assert _column(_rows(db, "donors", {"search": "bob"}), "Donor") == ["Bob Jones"]

    def test_income_vs_expenses_by_month(self, db, church_data):
        dataset = _rows(db, "comparison", date_range=(date(2024, 3, 1), date(2024, 4, 30)))
        assert _column(dataset, "Month") == [3, 4]
        march, april = [dict(zip(dataset.columns, row)) for row in dataset.rows]
        assert (march["Income"], march["Expenses"], march["Net"]) == (
            Decimal("830.00"), Decimal("120.50"), Decimal("709.50"),
        )
        assert (april["Income"], april["Expenses"], april["Net"]) == (Decimal("999.00"), 0, Decimal("999.00"))
        assert march["Year"] == 2024

    def test_finance_officer_can_run_finance_analysis_only(self):
        context = ReportContext(role="finance_officer", permissions=frozenset({"finance", "reports"}), as_of=AS_OF)
        assert build_plan("donors", {}, context).title == "Donor Analysis"
        assert build_plan("comparison", {}, context).title == "Income vs Expenses"
        with pytest.raises(PermissionDenied):
            build_plan("events", {}, context)


class TestEventPerformance:
    def test_events_with_targets_are_rated(self, db, church_data):
        youth_night = Event(name="Youth Night", event_type="youth", event_date=date(2024, 3, 8), expected_attendance=2)
        bible_study = Event(name="Bible Study", event_type="study", event_date=date(2024, 3, 9), expected_attendance=10)
        db.add_all([youth_night, bible_study])
        db.flush()
        db.add_all([AttendanceRecord(event_id=youth_night.id) for _ in range(2)])
        db.add(AttendanceRecord(event_id=youth_night.id, is_present=False))
        db.add_all([AttendanceRecord(event_id=bible_study.id) for _ in range(9)])
        db.commit()

        dataset = _rows(db, "events")
        assert _column(dataset, "Event") == ["Bible Study", "Youth Night", "Sunday Service"]
        assert _column(dataset, "Actual") == [9, 2, 2]
        assert _column(dataset, "Performance") == ["Good", "Exceeded", "Poor"]
        assert _column(dataset, "Attendance %") == [pytest.approx(90.0), pytest.approx(100.0), pytest.approx(1.7)]

    def test_event_type_filter(self, db, church_data):
        dataset = _rows(db, "events", {"event_type": "prayer"})
        assert len(dataset) == 0
        assert _column(_rows(db, "events", {"event_type": "service"}), "Event") == ["Sunday Service"]


class TestMaterializer:
    def test_columns_follow_plan_order(self, db, church_data, admin_context):
        plan = build_plan("income", {}, admin_context)
        dataset = materializer.execute(db, plan)
        assert dataset.columns == plan.column_labels
        assert all(len(row) == len(dataset.columns) for row in dataset.rows)

    def test_storage_failure_becomes_query_execution_error(self, sqlite_engine, session_factory, admin_context):
        with sqlite_engine.begin() as connection:
            connection.exec_driver_sql("DROP TABLE equipment")
        session = session_factory()
        try:
            with pytest.raises(QueryExecutionError) as excinfo:
                materializer.execute(session, build_plan("equipment", {}, admin_context))
        finally:
            session.close()
        assert "equipment" in excinfo.value.detail
        assert excinfo.value.public_message == "Error generating report"
