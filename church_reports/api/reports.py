#!/usr/bin/env python3
"""
Ad-hoc report generation API routes
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from church_reports.core.database import get_db
from church_reports.core.exceptions import ReportError
from church_reports.core.security import require_permission
from church_reports.schemas.report import ReportContext, ReportRequest
from church_reports.services.report_service import ReportService
from church_reports.utils.response import http_error, success_response

router = APIRouter(prefix="/reports", tags=["Reports"])

RESERVED_PARAMS = {"report_type", "format", "start", "end"}

@router.get("/types")
async def get_report_types(context: ReportContext = Depends(require_permission("reports"))):
    """Report types available to the current user"""
    return success_response(ReportService.list_report_types(context))

@router.get("/generate")
async def generate_report(
    request: Request,
    report_type: str = Query(..., description="Report identifier, e.g. directory or financial"),
    format: str = Query("csv", description="csv, tsv, excel or pdf"),
    start: Optional[date] = Query(None, description="Period start (defaults to first day of this month)"),
    end: Optional[date] = Query(None, description="Period end (defaults to last day of this month)"),
    db: Session = Depends(get_db),
    context: ReportContext = Depends(require_permission("reports"))
):
    """Generate a report and return it as a downloadable file"""
    filters = {
        key: value for key, value in request.query_params.items()
        if key not in RESERVED_PARAMS
    }
    try:
        report_request = ReportRequest.build(report_type, format, filters, start, end)
        artifact = ReportService.generate(db, context, report_request)
    except ReportError as e:
        raise http_error(e)

    return Response(
        content=artifact.content,
        media_type=artifact.media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{artifact.filename}"',
            "X-Report-Rows": str(artifact.row_count)
        }
    )
