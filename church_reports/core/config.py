#!/usr/bin/env python3
"""
Application configuration with environment variables
"""

import os
from typing import Optional
from pydantic import BaseModel

class Settings(BaseModel):
    """Application settings"""

    # Database Configuration
    DB_HOST: str = os.getenv("DB_HOST", "127.0.0.1")
    DB_PORT: str = os.getenv("DB_PORT", "5432")
    DB_USER: str = os.getenv("DB_USER", "postgres")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "root")
    DB_NAME: str = os.getenv("DB_NAME", "church_db")
    DATABASE_URL_OVERRIDE: Optional[str] = os.getenv("DATABASE_URL")

    # Security Configuration
    SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-change-in-production")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Application Configuration
    APP_TITLE: str = "Church Reporting API"
    APP_VERSION: str = "1.0.0"
    CHURCH_NAME: str = os.getenv("CHURCH_NAME", "Deliverance Church")

    # Report output and scheduling
    REPORT_OUTPUT_DIR: str = os.getenv("REPORT_OUTPUT_DIR", os.path.join("data", "reports_output"))
    SCHEDULER_ENABLED: bool = os.getenv("SCHEDULER_ENABLED", "true").lower() in ("1", "true", "yes")
    SCHEDULER_CHECK_INTERVAL: int = int(os.getenv("SCHEDULER_CHECK_INTERVAL", "60"))
    SCHEDULER_MAX_WORKERS: int = int(os.getenv("SCHEDULER_MAX_WORKERS", "1"))

    # SMTP / Email (empty host = email disabled)
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_SENDER: str = os.getenv("SMTP_SENDER", "")

    @property
    def DATABASE_URL(self) -> str:
        """Construct database URL"""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def email_configured(self) -> bool:
        """Whether outbound email can be attempted"""
        return bool(self.SMTP_HOST and (self.SMTP_SENDER or self.SMTP_USERNAME))

# Global settings instance
settings = Settings()
