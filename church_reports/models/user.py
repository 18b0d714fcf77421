#!/usr/bin/env python3
"""
User model
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime
from church_reports.core.database import Base
from church_reports.utils.hash_utils import hash_password, verify_password

class User(Base):
    """User model for authentication and authorization"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=True)
    last_name = Column(String(50), nullable=True)
    role = Column(String(30), nullable=False, default="member")
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.username

    def verify_password(self, password: str) -> bool:
        """Verify password"""
        return verify_password(password, self.hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        """Get hashed password"""
        return hash_password(password)
