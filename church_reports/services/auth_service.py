#!/usr/bin/env python3
"""
Authentication service
"""

from typing import Optional
from sqlalchemy.orm import Session
from datetime import timedelta
from church_reports.core.security import create_access_token
from church_reports.repositories.user_repository import get_user_by_username
from church_reports.models.roles import permissions_for
from church_reports.models.user import User
from church_reports.core.config import settings
from church_reports.schemas.user import UserResponse

class AuthService:
    @staticmethod
    def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
        """Authenticate user with username and password"""
        user = get_user_by_username(db, username)
        if not user:
            return None
        if not user.verify_password(password):
            return None
        return user

    @staticmethod
    def create_access_token(user: User) -> str:
        """Create access token for user"""
        access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        return create_access_token(
            data={"sub": user.username, "role": user.role},
            expires_delta=access_token_expires
        )

    @staticmethod
    def user_response(user: User) -> UserResponse:
        """User details with the permissions granted by their role"""
        return UserResponse(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            full_name=user.full_name,
            role=user.role,
            permissions=sorted(permissions_for(user.role)),
            is_active=bool(user.is_active),
            created_at=user.created_at
        )
