"""
mail_service.py — One-time code delivery
A CodeSender delivers a verification code to an email address. Resend is
used when an API key is configured; otherwise codes go to the log so local
development works without an email account.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from config import RESEND_API_KEY, RESEND_API_URL, EMAIL_FROM
from errors import DeliveryFailed

logger = logging.getLogger(__name__)

SUBJECTS = {
    "register": "Expense Tracker Registration OTP",
    "login": "Expense Tracker Login Verification OTP",
    "forgotPassword": "Expense Tracker Password Reset OTP",
}

INTROS = {
    "register": "Thank you for registering with Expense Tracker. Please use the following One-Time Password (OTP) to verify your account:",
    "login": "You are attempting to log in to your Expense Tracker account. Please use the following One-Time Password (OTP) to complete your login:",
    "forgotPassword": "You have requested to reset your password for your Expense Tracker account.",
}


def render_code_email(code: str, purpose: str, minutes: int) -> str:
    intro = INTROS.get(purpose, "Please use the following One-Time Password (OTP):")
    return (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">'
        f"<p>Hello,</p><p>{intro}</p>"
        f"<p>Your OTP is: <strong>{code}</strong></p>"
        f"<p>This code is valid for {minutes} minutes.</p>"
        "<p>If you did not request this, please ignore this email.</p>"
        "<p>Thank you,<br>Your Expense Tracker Team</p>"
        "</div>"
    )


class CodeSender(ABC):
    """Abstract base class for code delivery channels."""

    @abstractmethod
    def send_code(self, destination: str, code: str, purpose: str, minutes: int) -> None:
        """Deliver `code` to `destination`. Raises DeliveryFailed."""
        ...


class LoggingCodeSender(CodeSender):
    def send_code(self, destination: str, code: str, purpose: str, minutes: int) -> None:
        logger.info(f"[dev] {purpose} code for {destination}: {code}")


class ResendCodeSender(CodeSender):
    def __init__(self, api_key: str, sender: str = EMAIL_FROM, url: str = RESEND_API_URL, timeout: float = 10,
                 transport: httpx.BaseTransport | None = None):
        self.api_key = api_key
        self.transport = transport
        self.sender = sender
        self.url = url
        self.timeout = timeout

    def send_code(self, destination: str, code: str, purpose: str, minutes: int) -> None:
        payload = {
            "from": self.sender,
            "to": [destination],
            "subject": SUBJECTS.get(purpose, "Expense Tracker OTP"),
            "html": render_code_email(code, purpose, minutes),
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(self.url, json=payload, headers=headers)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error sending OTP email to {destination}: {e}")
            raise DeliveryFailed() from e
        logger.info(f"OTP email sent to {destination}")


def get_code_sender() -> CodeSender:
    """FastAPI dependency — picks the sender from configuration."""
    if RESEND_API_KEY:
        return ResendCodeSender(RESEND_API_KEY)
    return LoggingCodeSender()
