#!/usr/bin/env python3
"""
Dataset materializer - executes a query plan and returns a ReportDataset
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from church_reports.core.exceptions import QueryExecutionError
from church_reports.schemas.report import ReportDataset
from church_reports.services.query_builder import QueryPlan

logger = logging.getLogger(__name__)

def _normalize_value(value):
    """Keep scalar row values; averages come back as floats or Decimals depending on dialect"""
    if isinstance(value, float):
        return round(value, 2)
    if isinstance(value, Decimal) and value.as_tuple().exponent < -2:
        return value.quantize(Decimal("0.01"))
    if isinstance(value, (date, datetime, Decimal, int, str)) or value is None:
        return value
    return str(value)

def execute(db: Session, plan: QueryPlan) -> ReportDataset:
    """Run the plan once; rows come back in the plan's declared column order"""
    keys = plan.column_keys
    try:
        result = db.execute(plan.statement)
        rows = tuple(
            tuple(_normalize_value(mapping.get(key)) for key in keys)
            for mapping in result.mappings()
        )
    except SQLAlchemyError as e:
        logger.exception(f"Query for report '{plan.report_type.value}' failed")
        raise QueryExecutionError(str(getattr(e, "orig", None) or e))

    logger.info(f"Materialized {len(rows)} rows for report '{plan.report_type.value}'")
    return ReportDataset(columns=plan.column_labels, rows=rows)
