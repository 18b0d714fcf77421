#!/usr/bin/env python3
"""
Query builder - turns a report type and filters into a parameterized query plan.

Every report type is registered once with its title, required permission,
ordered column set and a builder producing a SQLAlchemy ``Select``. Filters
are combined with AND only; text search ORs across the report's searchable
columns before being conjoined with the rest.
"""

from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from sqlalchemy import String, and_, case, distinct, extract, func, literal, or_, select, union_all
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import aliased
from sqlalchemy.sql import Select
from sqlalchemy.sql.functions import FunctionElement

from church_reports.core.exceptions import PermissionDenied
from church_reports.models.church import (
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
    Visitor,
)
from church_reports.schemas.report import AgeGroup, ReportContext, ReportFilters, ReportType
from church_reports.services.schedule_clock import add_months, month_bounds

DateRange = Tuple[date, date]

NEW_MEMBER_WINDOW_MONTHS = 3
MAINTENANCE_DUE_SOON_DAYS = 30
GOOD_ATTENDANCE_RATIO = 0.8
AVERAGE_ATTENDANCE_RATIO = 0.6

AGE_RANGES = {
    AgeGroup.CHILDREN: (None, 12),
    AgeGroup.TEENS: (13, 17),
    AgeGroup.YOUTH: (18, 35),
    AgeGroup.ADULTS: (36, 59),
    AgeGroup.SENIORS: (60, None),
}

class group_concat(FunctionElement):
    """String aggregate of a column, joined by a separator"""
    type = String()
    name = "group_concat"
    inherit_cache = True

@compiles(group_concat)
def _compile_group_concat(element, compiler, **kw):
    expr, separator = list(element.clauses)
    return "group_concat(%s, %s)" % (compiler.process(expr, **kw), compiler.process(separator, **kw))

@compiles(group_concat, "mysql")
def _compile_mysql_group_concat(element, compiler, **kw):
    expr, separator = list(element.clauses)
    # MySQL only accepts a string literal after SEPARATOR
    separator_sql = compiler.process(separator, **dict(kw, literal_binds=True))
    return "group_concat(%s SEPARATOR %s)" % (compiler.process(expr, **kw), separator_sql)

@compiles(group_concat, "postgresql")
def _compile_string_agg(element, compiler, **kw):
    expr, separator = list(element.clauses)
    return "string_agg(%s, %s)" % (compiler.process(expr, **kw), compiler.process(separator, **kw))

class QueryPlan:
    """Parameterized query plus the ordered column set it projects"""

    def __init__(self, report_type: ReportType, title: str, statement: Select,
                 columns: Sequence[Tuple[str, str]], date_range: Optional[DateRange] = None):
        self.report_type = report_type
        self.title = title
        self.statement = statement
        self.columns = tuple(columns)
        self.date_range = date_range

    @property
    def column_keys(self) -> Tuple[str, ...]:
        return tuple(key for key, _ in self.columns)

    @property
    def column_labels(self) -> Tuple[str, ...]:
        return tuple(label for _, label in self.columns)

    def compile(self, dialect=None) -> Tuple[str, List[Any]]:
        """SQL text and its parameters, in bind order"""
        compiled = self.statement.compile(dialect=dialect)
        params = compiled.params
        if compiled.positiontup:
            return str(compiled), [params[name] for name in compiled.positiontup]
        return str(compiled), list(params.values())

    @property
    def sql(self) -> str:
        return self.compile()[0]

    @property
    def params(self) -> List[Any]:
        return self.compile()[1]

    def __eq__(self, other) -> bool:
        if not isinstance(other, QueryPlan):
            return NotImplemented
        return (self.report_type, self.columns, self.date_range, self.compile()) == \
            (other.report_type, other.columns, other.date_range, other.compile())

    def __repr__(self) -> str:
        return f"QueryPlan({self.report_type.value!r}, columns={len(self.columns)})"

Builder = Callable[[ReportFilters, ReportContext, Optional[DateRange]], Select]

class ReportDefinition:
    """Registry entry for one report type"""

    def __init__(self, report_type: ReportType, title: str, permission: str,
                 columns: Sequence[Tuple[str, str]], builder: Builder, uses_period: bool = False):
        self.report_type = report_type
        self.title = title
        self.permission = permission
        self.columns = tuple(columns)
        self.builder = builder
        self.uses_period = uses_period

REPORT_REGISTRY: Dict[ReportType, ReportDefinition] = {}

def register_report(report_type: ReportType, title: str, permission: str,
                    columns: Sequence[Tuple[str, str]], uses_period: bool = False):
    """Decorator registering a builder for a report type"""
    def decorator(builder: Builder) -> Builder:
        REPORT_REGISTRY[report_type] = ReportDefinition(
            report_type, title, permission, columns, builder, uses_period
        )
        return builder
    return decorator

def get_report_definition(report_type: Union[str, ReportType]) -> ReportDefinition:
    """Registry lookup; raises UnknownReportType for anything outside the closed set"""
    return REPORT_REGISTRY[ReportType.parse(report_type)]

def resolve_date_range(filters: ReportFilters, as_of: date,
                       date_range: Optional[DateRange] = None) -> DateRange:
    """Explicit range, then filter bounds, then the current month"""
    if date_range is not None:
        return date_range
    first, last = month_bounds(as_of)
    return filters.date_from or first, filters.date_to or last

def build_plan(report_type: Union[str, ReportType],
               filters: Union[ReportFilters, Mapping[str, Any], None] = None,
               context: Optional[ReportContext] = None,
               date_range: Optional[DateRange] = None) -> QueryPlan:
    """Build the query plan for a report type and filter set"""
    definition = get_report_definition(report_type)
    filters = ReportFilters.from_mapping(filters)
    context = context or ReportContext.system()

    if not context.can(definition.permission):
        raise PermissionDenied(
            f"Permission '{definition.permission}' is required for the {definition.title}"
        )

    period = resolve_date_range(filters, context.as_of, date_range) if definition.uses_period else None
    statement = definition.builder(filters, context, period)
    return QueryPlan(definition.report_type, definition.title, statement, definition.columns, period)

# ---------------------------------------------------------------------------
# Predicate helpers
# ---------------------------------------------------------------------------

def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"

def search_predicate(term: Optional[str], columns: Sequence):
    """Case-insensitive partial match across columns, ORed together"""
    if not term:
        return None
    pattern = _like_pattern(term)
    return or_(*[column.ilike(pattern, escape="\\") for column in columns])

def between_predicate(column, start: Optional[date], end: Optional[date]):
    """Inclusive on both ends; either bound may be open"""
    if start and end:
        return column.between(start, end)
    if start:
        return column >= start
    if end:
        return column <= end
    return None

def age_predicate(column, age_group: Optional[AgeGroup]):
    if age_group is None:
        return None
    low, high = AGE_RANGES[age_group]
    if low is None:
        return column <= high
    if high is None:
        return column >= low
    return column.between(low, high)

def _where(statement: Select, predicates: Sequence) -> Select:
    predicates = [p for p in predicates if p is not None]
    if predicates:
        statement = statement.where(and_(*predicates))
    return statement

def _full_name(first, last):
    return (first + literal(" ") + func.coalesce(last, literal(""))).label("full_name")

# ---------------------------------------------------------------------------
# Member reports
# ---------------------------------------------------------------------------

MEMBER_SEARCH_COLUMNS = (Member.first_name, Member.last_name, Member.phone, Member.email)

MEMBER_COLUMNS = (
    ("member_number", "Member #"),
    ("full_name", "Full Name"),
    ("gender", "Gender"),
    ("age", "Age"),
    ("phone", "Phone"),
    ("email", "Email"),
    ("join_date", "Join Date"),
    ("membership_status", "Status"),
    ("departments", "Departments"),
)

def _member_predicates(filters: ReportFilters, include_status: bool = True) -> List:
    predicates = []
    if filters.department:
        predicates.append(Member.id.in_(
            select(MemberDepartment.member_id).where(
                MemberDepartment.department_id == filters.department,
                MemberDepartment.is_active.is_(True),
            )
        ))
    if filters.gender:
        predicates.append(Member.gender == filters.gender)
    if include_status:
        status = filters.status or "active"
        if status != "all":
            predicates.append(Member.membership_status == status)
    predicates.append(between_predicate(Member.join_date, filters.join_date_from, filters.join_date_to))
    predicates.append(search_predicate(filters.search, MEMBER_SEARCH_COLUMNS))
    predicates.append(age_predicate(Member.age, filters.age_group))
    return predicates

def _active_memberships():
    """One row per member and department, however many active assignments exist"""
    return (
        select(MemberDepartment.member_id, MemberDepartment.department_id)
        .where(MemberDepartment.is_active.is_(True))
        .distinct()
        .subquery("active_memberships")
    )

def _member_select(*extra_columns) -> Select:
    """Member detail projection with comma-joined active department names"""
    memberships = _active_memberships()
    return (
        select(
            Member.member_number.label("member_number"),
            _full_name(Member.first_name, Member.last_name),
            Member.gender.label("gender"),
            Member.age.label("age"),
            Member.phone.label("phone"),
            Member.email.label("email"),
            Member.join_date.label("join_date"),
            Member.membership_status.label("membership_status"),
            group_concat(Department.name, literal(", ")).label("departments"),
            *extra_columns,
        )
        .select_from(Member)
        .outerjoin(memberships, memberships.c.member_id == Member.id)
        .outerjoin(Department, Department.id == memberships.c.department_id)
        .group_by(Member.id)
    )

@register_report(ReportType.DIRECTORY, "Member Directory", "members", MEMBER_COLUMNS)
def _member_directory(filters, context, period):
    statement = _where(_member_select(), _member_predicates(filters))
    return statement.order_by(Member.last_name, Member.first_name, Member.id)

@register_report(ReportType.NEW_MEMBERS, "New Members Report", "members", MEMBER_COLUMNS)
def _new_members(filters, context, period):
    since = add_months(context.as_of, -NEW_MEMBER_WINDOW_MONTHS)
    statement = _where(_member_select(), [Member.join_date >= since, *_member_predicates(filters)])
    return statement.order_by(Member.join_date.desc(), Member.id)

@register_report(ReportType.BIRTHDAYS, "Birthday Report", "members", (
    ("member_number", "Member #"),
    ("full_name", "Full Name"),
    ("date_of_birth", "Date of Birth"),
    ("birthday_day", "Day"),
    ("phone", "Phone"),
    ("email", "Email"),
    ("departments", "Departments"),
))
def _birthdays(filters, context, period):
    # Month of year only; birth day and year never filter
    month = filters.month or context.as_of.month
    birthday_day = extract("day", Member.date_of_birth)
    statement = _member_select(
        Member.date_of_birth.label("date_of_birth"),
        birthday_day.label("birthday_day"),
    )
    statement = _where(statement, [extract("month", Member.date_of_birth) == month, *_member_predicates(filters)])
    return statement.order_by(birthday_day, Member.last_name, Member.id)

@register_report(ReportType.DEPARTMENTS, "Department Analysis", "members", (
    ("department_name", "Department"),
    ("department_type", "Type"),
    ("total_members", "Total Members"),
    ("male_count", "Male"),
    ("female_count", "Female"),
    ("average_age", "Average Age"),
    ("department_head", "Department Head"),
))
def _department_analysis(filters, context, period):
    # Aggregated per department; member filters deliberately do not apply
    member = aliased(Member)
    head = aliased(Member)
    total_members = func.count(distinct(member.id))
    return (
        select(
            Department.name.label("department_name"),
            Department.department_type.label("department_type"),
            total_members.label("total_members"),
            func.count(distinct(case((member.gender == "male", member.id)))).label("male_count"),
            func.count(distinct(case((member.gender == "female", member.id)))).label("female_count"),
            func.avg(member.age).label("average_age"),
            (head.first_name + literal(" ") + head.last_name).label("department_head"),
        )
        .select_from(Department)
        .outerjoin(MemberDepartment, and_(
            MemberDepartment.department_id == Department.id,
            MemberDepartment.is_active.is_(True),
        ))
        .outerjoin(member, and_(
            member.id == MemberDepartment.member_id,
            member.membership_status == "active",
        ))
        .outerjoin(head, head.id == Department.head_member_id)
        .where(Department.is_active.is_(True))
        .group_by(Department.id, Department.name, Department.department_type, head.first_name, head.last_name)
        .order_by(total_members.desc(), Department.name)
    )

@register_report(ReportType.INACTIVE, "Inactive Members Report", "members", MEMBER_COLUMNS + (
    ("last_attendance", "Last Attendance"),
))
def _inactive_members(filters, context, period):
    last_attendance = (
        select(func.max(AttendanceRecord.check_in_time))
        .where(AttendanceRecord.member_id == Member.id)
        .scalar_subquery()
    )
    statement = _member_select(last_attendance.label("last_attendance"))
    statement = _where(statement, [
        Member.membership_status == "inactive",
        *_member_predicates(filters, include_status=False),
    ])
    return statement.order_by(Member.updated_at.desc(), Member.id)

# ---------------------------------------------------------------------------
# Attendance, finance, visitors, equipment
# ---------------------------------------------------------------------------

@register_report(ReportType.ATTENDANCE, "Attendance Summary", "attendance", (
    ("event_name", "Event"),
    ("event_type", "Event Type"),
    ("event_date", "Event Date"),
    ("present_count", "Present"),
    ("total_records", "Check-ins"),
    ("expected_attendance", "Expected"),
), uses_period=True)
def _attendance_summary(filters, context, period):
    statement = (
        select(
            Event.name.label("event_name"),
            Event.event_type.label("event_type"),
            Event.event_date.label("event_date"),
            func.coalesce(func.sum(case((AttendanceRecord.is_present.is_(True), 1), else_=0)), 0).label("present_count"),
            func.count(AttendanceRecord.id).label("total_records"),
            Event.expected_attendance.label("expected_attendance"),
        )
        .select_from(Event)
        .outerjoin(AttendanceRecord, AttendanceRecord.event_id == Event.id)
        .group_by(Event.id, Event.name, Event.event_type, Event.event_date, Event.expected_attendance)
    )
    statement = _where(statement, [
        between_predicate(Event.event_date, *period),
        Event.event_type == filters.event_type if filters.event_type else None,
    ])
    return statement.order_by(Event.event_date.desc(), Event.name)

@register_report(ReportType.FINANCIAL, "Financial Summary Report", "finance", (
    ("entry_type", "Type"),
    ("category", "Category"),
    ("transactions", "Transactions"),
    ("total_amount", "Total Amount"),
), uses_period=True)
def _financial_summary(filters, context, period):
    uncategorized = literal("Uncategorized")
    income_category = func.coalesce(IncomeCategory.name, uncategorized)
    expense_category = func.coalesce(ExpenseCategory.name, uncategorized)
    income = (
        select(
            literal("Income").label("entry_type"),
            income_category.label("category"),
            func.count(Income.id).label("transactions"),
            func.sum(Income.amount).label("total_amount"),
        )
        .select_from(Income)
        .outerjoin(IncomeCategory, IncomeCategory.id == Income.category_id)
        .where(between_predicate(Income.income_date, *period))
        .group_by(IncomeCategory.name)
    )
    expenses = (
        select(
            literal("Expense").label("entry_type"),
            expense_category.label("category"),
            func.count(Expense.id).label("transactions"),
            func.sum(Expense.amount).label("total_amount"),
        )
        .select_from(Expense)
        .outerjoin(ExpenseCategory, ExpenseCategory.id == Expense.category_id)
        .where(between_predicate(Expense.expense_date, *period))
        .group_by(ExpenseCategory.name)
    )
    summary = union_all(income, expenses).subquery("summary")
    return select(
        summary.c.entry_type,
        summary.c.category,
        summary.c.transactions,
        summary.c.total_amount,
    ).order_by(summary.c.entry_type.desc(), summary.c.category)

def _transaction_predicates(filters, period, table, date_column, search_columns):
    return [
        between_predicate(date_column, *period),
        table.category_id == filters.category if filters.category else None,
        table.payment_method == filters.payment_method if filters.payment_method else None,
        table.amount >= filters.min_amount if filters.min_amount is not None else None,
        table.amount <= filters.max_amount if filters.max_amount is not None else None,
        search_predicate(filters.search, search_columns),
    ]

@register_report(ReportType.INCOME, "Income Report", "finance", (
    ("transaction_date", "Date"),
    ("transaction_id", "Transaction #"),
    ("category", "Category"),
    ("donor_name", "Donor"),
    ("payment_method", "Payment Method"),
    ("amount", "Amount"),
    ("status", "Status"),
), uses_period=True)
def _income_report(filters, context, period):
    statement = (
        select(
            Income.income_date.label("transaction_date"),
            Income.transaction_id.label("transaction_id"),
            IncomeCategory.name.label("category"),
            Income.donor_name.label("donor_name"),
            Income.payment_method.label("payment_method"),
            Income.amount.label("amount"),
            Income.status.label("status"),
        )
        .select_from(Income)
        .outerjoin(IncomeCategory, IncomeCategory.id == Income.category_id)
    )
    statement = _where(statement, _transaction_predicates(
        filters, period, Income, Income.income_date,
        (Income.donor_name, Income.transaction_id, Income.description),
    ))
    return statement.order_by(Income.income_date, Income.id)

@register_report(ReportType.EXPENSES, "Expense Report", "finance", (
    ("transaction_date", "Date"),
    ("transaction_id", "Transaction #"),
    ("category", "Category"),
    ("vendor_name", "Vendor"),
    ("payment_method", "Payment Method"),
    ("amount", "Amount"),
    ("status", "Status"),
), uses_period=True)
def _expense_report(filters, context, period):
    statement = (
        select(
            Expense.expense_date.label("transaction_date"),
            Expense.transaction_id.label("transaction_id"),
            ExpenseCategory.name.label("category"),
            Expense.vendor_name.label("vendor_name"),
            Expense.payment_method.label("payment_method"),
            Expense.amount.label("amount"),
            Expense.status.label("status"),
        )
        .select_from(Expense)
        .outerjoin(ExpenseCategory, ExpenseCategory.id == Expense.category_id)
    )
    statement = _where(statement, _transaction_predicates(
        filters, period, Expense, Expense.expense_date,
        (Expense.vendor_name, Expense.transaction_id, Expense.description),
    ))
    return statement.order_by(Expense.expense_date, Expense.id)

@register_report(ReportType.DONORS, "Donor Analysis", "finance", (
    ("donor_name", "Donor"),
    ("donation_count", "Donations"),
    ("total_donated", "Total Donated"),
    ("average_donation", "Average Donation"),
    ("first_donation", "First Donation"),
    ("last_donation", "Last Donation"),
    ("categories", "Categories"),
), uses_period=True)
def _donor_analysis(filters, context, period):
    # Verified gifts only; categories come from distinct donor/category pairs
    donor = func.coalesce(Income.donor_name, literal("Anonymous"))
    predicates = [
        between_predicate(Income.income_date, *period),
        Income.status == "verified",
        search_predicate(filters.search, (Income.donor_name,)),
    ]
    total_donated = func.sum(Income.amount)
    totals = (
        _where(select(
            donor.label("donor_name"),
            func.count(Income.id).label("donation_count"),
            total_donated.label("total_donated"),
            func.avg(Income.amount).label("average_donation"),
            func.min(Income.income_date).label("first_donation"),
            func.max(Income.income_date).label("last_donation"),
        ).select_from(Income), predicates)
        .group_by(donor)
        .having(total_donated > 0)
        .subquery("donor_totals")
    )
    pairs = (
        _where(
            select(donor.label("donor_name"), IncomeCategory.name.label("category"))
            .select_from(Income)
            .join(IncomeCategory, IncomeCategory.id == Income.category_id),
            predicates,
        )
        .distinct()
        .subquery("donor_category_pairs")
    )
    categories = (
        select(pairs.c.donor_name, group_concat(pairs.c.category, literal(", ")).label("categories"))
        .group_by(pairs.c.donor_name)
        .subquery("donor_categories")
    )
    return (
        select(
            totals.c.donor_name,
            totals.c.donation_count,
            totals.c.total_donated,
            totals.c.average_donation,
            totals.c.first_donation,
            totals.c.last_donation,
            categories.c.categories,
        )
        .select_from(totals)
        .outerjoin(categories, categories.c.donor_name == totals.c.donor_name)
        .order_by(totals.c.total_donated.desc(), totals.c.donor_name)
    )

@register_report(ReportType.COMPARISON, "Income vs Expenses", "finance", (
    ("year", "Year"),
    ("month", "Month"),
    ("income", "Income"),
    ("expenses", "Expenses"),
    ("net", "Net"),
), uses_period=True)
def _income_vs_expenses(filters, context, period):
    """Monthly income and expense totals with the net difference"""
    entries = union_all(
        select(
            literal("income").label("entry_type"),
            extract("year", Income.income_date).label("year"),
            extract("month", Income.income_date).label("month"),
            Income.amount.label("amount"),
        ).where(between_predicate(Income.income_date, *period)),
        select(
            literal("expense").label("entry_type"),
            extract("year", Expense.expense_date).label("year"),
            extract("month", Expense.expense_date).label("month"),
            Expense.amount.label("amount"),
        ).where(between_predicate(Expense.expense_date, *period)),
    ).subquery("entries")
    income = func.coalesce(func.sum(case((entries.c.entry_type == "income", entries.c.amount))), 0)
    expenses = func.coalesce(func.sum(case((entries.c.entry_type == "expense", entries.c.amount))), 0)
    return (
        select(
            entries.c.year,
            entries.c.month,
            income.label("income"),
            expenses.label("expenses"),
            (income - expenses).label("net"),
        )
        .group_by(entries.c.year, entries.c.month)
        .order_by(entries.c.year, entries.c.month)
    )

@register_report(ReportType.VISITORS, "Visitor Report", "visitors", (
    ("visitor_number", "Visitor #"),
    ("full_name", "Name"),
    ("phone", "Phone"),
    ("email", "Email"),
    ("gender", "Gender"),
    ("age_group", "Age Group"),
    ("visit_date", "Visit Date"),
    ("status", "Status"),
    ("source", "Source"),
), uses_period=True)
def _visitor_list(filters, context, period):
    statement = select(
        Visitor.visitor_number.label("visitor_number"),
        _full_name(Visitor.first_name, Visitor.last_name),
        Visitor.phone.label("phone"),
        Visitor.email.label("email"),
        Visitor.gender.label("gender"),
        Visitor.age_group.label("age_group"),
        Visitor.visit_date.label("visit_date"),
        Visitor.status.label("status"),
        Visitor.how_heard_about_us.label("source"),
    )
    statement = _where(statement, [
        between_predicate(Visitor.visit_date, *period),
        Visitor.status == filters.status if filters.status else None,
        Visitor.gender == filters.gender if filters.gender else None,
        Visitor.age_group == filters.age_group.value if filters.age_group else None,
        Visitor.how_heard_about_us == filters.source if filters.source else None,
        search_predicate(filters.search, (Visitor.first_name, Visitor.last_name, Visitor.phone, Visitor.email)),
    ])
    return statement.order_by(Visitor.visit_date.desc(), Visitor.last_name, Visitor.id)

@register_report(ReportType.EQUIPMENT, "Equipment Inventory Report", "equipment", (
    ("equipment_code", "Code"),
    ("name", "Equipment"),
    ("category", "Category"),
    ("location", "Location"),
    ("status", "Status"),
    ("purchase_price", "Purchase Price"),
    ("next_maintenance_date", "Next Maintenance"),
    ("maintenance_status", "Maintenance Status"),
))
def _equipment_inventory(filters, context, period):
    today = context.as_of
    week_ahead = today + timedelta(days=7)
    due_soon_until = today + timedelta(days=MAINTENANCE_DUE_SOON_DAYS)
    maintenance_status = case(
        (Equipment.next_maintenance_date < today, "Overdue"),
        (Equipment.next_maintenance_date.between(today, week_ahead), "Due This Week"),
        (Equipment.next_maintenance_date.between(today, due_soon_until), "Due This Month"),
        else_="Up to Date",
    )
    statement = (
        select(
            Equipment.equipment_code.label("equipment_code"),
            Equipment.name.label("name"),
            EquipmentCategory.name.label("category"),
            Equipment.location.label("location"),
            Equipment.status.label("status"),
            Equipment.purchase_price.label("purchase_price"),
            Equipment.next_maintenance_date.label("next_maintenance_date"),
            maintenance_status.label("maintenance_status"),
        )
        .select_from(Equipment)
        .outerjoin(EquipmentCategory, EquipmentCategory.id == Equipment.category_id)
    )
    maintenance = None
    if filters.maintenance_due == "overdue":
        maintenance = Equipment.next_maintenance_date < today
    elif filters.maintenance_due == "due_soon":
        maintenance = Equipment.next_maintenance_date.between(today, due_soon_until)
    statement = _where(statement, [
        Equipment.category_id == filters.category if filters.category else None,
        Equipment.status == filters.status if filters.status else None,
        Equipment.location == filters.location if filters.location else None,
        maintenance,
        search_predicate(filters.search, (
            Equipment.name, Equipment.description, Equipment.equipment_code, Equipment.serial_number,
        )),
    ])
    return statement.order_by(Equipment.name, Equipment.id)

@register_report(ReportType.EVENTS, "Event Performance Report", "events", (
    ("event_name", "Event"),
    ("event_type", "Event Type"),
    ("event_date", "Event Date"),
    ("expected_attendance", "Expected"),
    ("actual_attendance", "Actual"),
    ("attendance_percentage", "Attendance %"),
    ("performance_rating", "Performance"),
), uses_period=True)
def _event_performance(filters, context, period):
    # Only events with an attendance target can be rated
    present = (
        select(AttendanceRecord.event_id.label("event_id"), func.count(AttendanceRecord.id).label("attendance_count"))
        .where(AttendanceRecord.is_present.is_(True))
        .group_by(AttendanceRecord.event_id)
        .subquery("present")
    )
    actual = func.coalesce(present.c.attendance_count, 0)
    expected = Event.expected_attendance
    rating = case(
        (actual >= expected, "Exceeded"),
        (actual >= expected * GOOD_ATTENDANCE_RATIO, "Good"),
        (actual >= expected * AVERAGE_ATTENDANCE_RATIO, "Average"),
        else_="Poor",
    )
    statement = (
        select(
            Event.name.label("event_name"),
            Event.event_type.label("event_type"),
            Event.event_date.label("event_date"),
            expected.label("expected_attendance"),
            actual.label("actual_attendance"),
            func.round(actual * 100.0 / expected, 1).label("attendance_percentage"),
            rating.label("performance_rating"),
        )
        .select_from(Event)
        .outerjoin(present, present.c.event_id == Event.id)
    )
    statement = _where(statement, [
        between_predicate(Event.event_date, *period),
        expected > 0,
        Event.event_type == filters.event_type if filters.event_type else None,
    ])
    return statement.order_by(Event.event_date.desc(), Event.name)
