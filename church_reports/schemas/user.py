#!/usr/bin/env python3
"""
User schemas for request/response validation
"""

from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime

class UserLogin(BaseModel):
    """Schema for user login"""
    username: str
    password: str

class UserResponse(BaseModel):
    """Schema for user response"""
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    role: str
    permissions: List[str] = []
    is_active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
