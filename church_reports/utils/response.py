#!/usr/bin/env python3
"""
Standardized API response builders
"""

import logging
from typing import Any, Dict, Optional
from fastapi import HTTPException

from church_reports.core.exceptions import QueryExecutionError, ReportError

logger = logging.getLogger(__name__)

def success_response(data: Any, message: str = "Success") -> Dict[str, Any]:
    """Build a success response"""
    return {
        "success": True,
        "message": message,
        "data": data
    }

def error_response(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    """Build an error response"""
    response = {
        "success": False,
        "message": message
    }
    if details:
        response["details"] = details
    return response

def http_error(error: ReportError) -> HTTPException:
    """Map a report error to an HTTPException; storage detail stays in the logs"""
    if isinstance(error, QueryExecutionError):
        logger.error(f"Report query failed: {error.detail}")
        return HTTPException(status_code=error.status_code, detail=error.public_message)
    return HTTPException(
        status_code=error.status_code,
        detail=error_response(error.public_message, {"code": error.code, **error.details})
    )
