#!/usr/bin/env python3
"""
User repository for database operations
"""

from typing import Optional
from sqlalchemy.orm import Session
from church_reports.models.user import User

def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """Get user by username"""
    return db.query(User).filter(User.username == username).first()

def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def create_user(db: Session, username: str, email: str, password: str,
                first_name: Optional[str] = None, last_name: Optional[str] = None,
                role: str = "member") -> User:
    """Create a new user"""
    user = User(
        username=username,
        email=email,
        hashed_password=User.get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=True
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def get_user_count(db: Session) -> int:
    """Get total user count"""
    return db.query(User).count()
