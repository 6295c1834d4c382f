# filedrop/routers/users.py
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session as DBSession

from filedrop.auth.passwords import hash_password, normalize_email
from filedrop.auth.session import Session, require_session
from filedrop.core.exceptions import ConflictError, NotFoundError
from filedrop.models.database import get_db
from filedrop.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["user"])


class RegisterInput(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


@router.post("/user.register")
def register(payload: RegisterInput, db: DBSession = Depends(get_db)):
    email = normalize_email(payload.email)

    # Check if user exists
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise ConflictError("Email already registered", code="EMAIL_TAKEN")

    user = User(email=email, name=payload.name.strip(), hashed_password=hash_password(payload.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent registration took the email after the check above
        db.rollback()
        raise ConflictError("Email already registered", code="EMAIL_TAKEN")
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return {"success": True, "user": user.to_dict()}


@router.get("/user.me")
def me(session: Session = Depends(require_session), db: DBSession = Depends(get_db)):
    user = db.query(User).filter(User.id == session.user.id).first()
    if not user:
        # token outlived its account
        raise NotFoundError("User", id=session.user.id)
    return user.to_dict()
