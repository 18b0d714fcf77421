#!/usr/bin/env python3
"""
Authentication schemas
"""

from pydantic import BaseModel

from church_reports.schemas.user import UserResponse

class Token(BaseModel):
    """Bearer token issued at login"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
