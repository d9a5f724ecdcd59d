from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from services.report_service import ReportService

router = APIRouter(prefix="/api/history", tags=["History"])


@router.get("/weekly")
async def weekly_history(user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    return ReportService.weekly_history(db, user_id)


@router.get("/monthly")
async def monthly_history(user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    return ReportService.monthly_history(db, user_id)


@router.delete("/{kind}/{period_id}")
async def delete_period(kind: str, period_id: str, user_id: int = Depends(get_current_user), db: Session = Depends(get_db)):
    """Delete a whole week ("Week 34 (2025)") or month ("August 2025")."""
    deleted = ReportService.delete_period(db, user_id, kind, period_id)
    return {"message": f"{deleted} expenses deleted for {kind} ID: {period_id}", "deletedCount": deleted}
