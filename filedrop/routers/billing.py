"""Billing plans. Payment processing and its webhooks live outside this service."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DBSession

from filedrop.auth.session import Session, require_session
from filedrop.core.exceptions import NotFoundError
from filedrop.models.database import get_db
from filedrop.models.user import User

router = APIRouter(prefix="/api", tags=["billing"])

PLAN_FREE = "free"
PLAN_PRO = "pro"

PLANS = {
    PLAN_FREE: {
        "name": "Free",
        "price": 0,
        "price_display": "Free",
        "max_files": 10,
        "max_file_size_mb": 4,
    },
    PLAN_PRO: {
        "name": "Pro",
        "price": 1500,
        "price_display": "$15/month",
        "max_files": 500,
        "max_file_size_mb": 32,
    },
}


def get_plan(plan_id: str) -> dict:
    """Limits for a plan; unknown ids fall back to the free plan."""
    if plan_id not in PLANS:
        plan_id = PLAN_FREE
    return {"id": plan_id, **PLANS[plan_id]}


@router.get("/billing.plans")
def list_plans():
    return [get_plan(plan_id) for plan_id in PLANS]


@router.get("/billing.subscription")
def subscription(session: Session = Depends(require_session), db: DBSession = Depends(get_db)):
    user = db.query(User).filter(User.id == session.user.id).first()
    if not user:
        raise NotFoundError("User", id=session.user.id)

    plan = get_plan(user.plan)
    return {
        "plan": plan,
        "is_subscribed": plan["id"] != PLAN_FREE,
        "file_count": len(user.files),
    }
