# ---------- routes/auth_routes.py ----------
"""
Auth routes: password login backed by a one-time email code.
Every flow that proves account ownership goes through /verify-otp.
"""
import logging
import re
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth import hash_password, verify_password, create_token, create_reset_token, get_current_user, verify_token
from database import get_db, store_guard
from models.user import User
from routes.expense_routes import get_now
from services.mail_service import CodeSender, get_code_sender
from services.otp_service import OTPService

router = APIRouter(prefix="/api/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r".+@.+\..+")
MIN_PASSWORD_LENGTH = 6
SESSION_PURPOSES = ("register", "login")


# ── Pydantic schemas ──────────────────────────────────────────────
class RegisterRequest(BaseModel):
    username: str
    email: str
    password: str


class LoginRequest(BaseModel):
    email: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: str


class VerifyOTPRequest(BaseModel):
    email: str
    otp: str
    purpose: str


class ResetPasswordRequest(BaseModel):
    email: str
    newPassword: str
    token: str


def _find_by_email(db: Session, email: str) -> User | None:
    with store_guard(db, "find_user"):
        return db.query(User).filter(User.email == email.strip().lower()).first()


# ── Routes ────────────────────────────────────────────────────────
@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    db: Session = Depends(get_db),
    sender: CodeSender = Depends(get_code_sender),
    now: datetime = Depends(get_now),
):
    """Create an unverified account and email it a registration code."""
    username = body.username.strip()
    email = body.email.strip().lower()
    if not username:
        raise HTTPException(status_code=400, detail="Username is required")
    if not EMAIL_RE.fullmatch(email):
        raise HTTPException(status_code=400, detail="Please enter a valid email address")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    if _find_by_email(db, email):
        raise HTTPException(status_code=400, detail="User already exists with that email")
    with store_guard(db, "register"):
        if db.query(User.id).filter(User.username == username).first():
            raise HTTPException(status_code=400, detail="Username is already taken")
        user = User(username=username, email=email, hashed_password=hash_password(body.password), is_verified=False)
        db.add(user)
        db.commit()
        db.refresh(user)

    OTPService.issue(db, user, "register", sender, now=now)
    logger.info(f"Registered user {user.id}")
    return {
        "message": "Registration successful! Please verify your email with the OTP.",
        "email": email,
        "requiresOTP": True,
    }


@router.post("/login")
async def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    sender: CodeSender = Depends(get_code_sender),
    now: datetime = Depends(get_now),
):
    """Check the password, then email a login code."""
    user = _find_by_email(db, body.email)
    if not user or not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    OTPService.issue(db, user, "login", sender, now=now)
    return {
        "message": "Login successful! Please verify your identity with the OTP.",
        "email": user.email,
        "requiresOTP": True,
    }


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    sender: CodeSender = Depends(get_code_sender),
    now: datetime = Depends(get_now),
):
    """Always answers the same way so account existence is not revealed."""
    user = _find_by_email(db, body.email)
    if user:
        OTPService.issue(db, user, "forgotPassword", sender, now=now)
    return {"message": "If your email exists, a verification code has been sent."}


@router.post("/verify-otp")
async def verify_otp(body: VerifyOTPRequest, db: Session = Depends(get_db), now: datetime = Depends(get_now)):
    if body.purpose not in SESSION_PURPOSES and body.purpose != "forgotPassword":
        raise HTTPException(status_code=400, detail="Invalid OTP purpose.")

    user = _find_by_email(db, body.email)
    if not user:
        raise HTTPException(status_code=400, detail="User not found.")
    if not OTPService.verify(db, user, body.otp, now=now):
        raise HTTPException(status_code=400, detail="Invalid or expired OTP.")

    if body.purpose == "forgotPassword":
        return {"message": "OTP verified successfully.", "token": create_reset_token(user.id)}

    if not user.is_verified:
        with store_guard(db, "mark_verified"):
            user.is_verified = True
            db.commit()
    token = create_token({"user_id": user.id, "username": user.username})
    return {"message": "OTP verified successfully! Redirecting...", "token": token}


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Set a new password using the reset token issued by /verify-otp."""
    if len(body.newPassword) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    payload = verify_token(body.token)
    user = _find_by_email(db, body.email)
    if (
        payload is None
        or user is None
        or payload.get("type") != "passwordReset"
        or payload.get("user_id") != user.id
    ):
        raise HTTPException(status_code=401, detail="Invalid or expired reset token.")

    with store_guard(db, "reset_password"):
        user.hashed_password = hash_password(body.newPassword)
        db.commit()
    logger.info(f"Password reset for user {user.id}")
    return {"message": "Password updated successfully."}


@router.get("/me")
async def me(user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    """Return the current user's profile."""
    with store_guard(db, "me"):
        u = db.query(User).filter(User.id == user_id).first()
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "isVerified": bool(u.is_verified),
        "createdAt": u.created_at.isoformat() if u.created_at else None,
    }
