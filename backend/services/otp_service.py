"""
otp_service.py — One-time codes for registration, login and password reset.
"""

import hmac
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from config import OTP_EXPIRY_MINUTES
from database import store_guard
from models.user import User
from services.expense_service import resolve_now
from services.mail_service import CodeSender

logger = logging.getLogger(__name__)


class OTPService:
    @staticmethod
    def generate() -> str:
        """4-digit numeric code."""
        return str(1000 + secrets.randbelow(9000))

    @staticmethod
    def issue(db: Session, user: User, purpose: str, sender: CodeSender, now: datetime | None = None) -> None:
        """Store a fresh code on the account and deliver it by email."""
        code = OTPService.generate()
        with store_guard(db, "issue_otp"):
            user.otp = code
            user.otp_expires = resolve_now(now) + timedelta(minutes=OTP_EXPIRY_MINUTES)
            db.commit()
        sender.send_code(user.email, code, purpose, OTP_EXPIRY_MINUTES)
        logger.info(f"Issued {purpose} code for user {user.id}")

    @staticmethod
    def verify(db: Session, user: User, code: str, now: datetime | None = None) -> bool:
        """Check and consume the pending code. Expired or wrong codes fail."""
        if not user.otp or user.otp_expires is None:
            return False
        if user.otp_expires < resolve_now(now):
            return False
        if not hmac.compare_digest(user.otp, str(code)):
            return False
        with store_guard(db, "consume_otp"):
            user.otp = None
            user.otp_expires = None
            db.commit()
        return True
