#!/usr/bin/env python3
"""
Report service - ad-hoc report generation
"""

import logging
from datetime import datetime
from typing import Any, Dict, List
from sqlalchemy.orm import Session

from church_reports.core.config import settings
from church_reports.schemas.report import (
    RenderedReport,
    ReportContext,
    ReportRequest,
    TitleMetadata,
)
from church_reports.services import materializer, renderer
from church_reports.services.audit_service import log_activity
from church_reports.services.query_builder import REPORT_REGISTRY, build_plan

logger = logging.getLogger(__name__)

class ReportService:
    """Service for on-demand report generation"""

    @staticmethod
    def list_report_types(context: ReportContext) -> List[Dict[str, Any]]:
        """Report types the actor may generate"""
        return [
            {
                "id": definition.report_type.value,
                "title": definition.title,
                "permission": definition.permission,
                "columns": [label for _, label in definition.columns],
                "uses_period": definition.uses_period,
            }
            for definition in REPORT_REGISTRY.values()
            if context.can(definition.permission)
        ]

    @staticmethod
    def generate(db: Session, context: ReportContext, request: ReportRequest) -> RenderedReport:
        """Build, materialize and render one report; nothing is written until rendering completes"""
        report_type = request.report_type
        report_format = request.format
        report_filters = request.filters
        if report_filters.ignored_keys:
            logger.debug(f"Ignoring unknown filter keys for {report_type.value}: {report_filters.ignored_keys}")

        plan = build_plan(report_type, report_filters, context, request.date_range)
        dataset = materializer.execute(db, plan)
        meta = TitleMetadata(
            organization=settings.CHURCH_NAME,
            title=plan.title,
            generated_at=datetime.now(),
            date_range=plan.date_range,
        )
        artifact = renderer.render(dataset, report_format, meta)

        log_activity(db, context, f"Generated {plan.title} ({report_format.value})", new_values={
            "report_type": report_type.value,
            "format": report_format.value,
            "filters": report_filters.to_mapping(),
            "rows": artifact.row_count,
        })
        return artifact
