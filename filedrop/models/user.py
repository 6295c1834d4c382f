import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from filedrop.models.database import Base


def new_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    image = Column(String(1024), nullable=True)
    email_verified = Column(DateTime, nullable=True)
    # OAuth and magic-link accounts never get a password
    hashed_password = Column(String(255), nullable=True)
    plan = Column(String(32), nullable=False, default="free")
    created_at = Column(DateTime, default=datetime.utcnow)

    # One user → many files
    files = relationship("File", back_populates="owner", cascade="all, delete-orphan")
    accounts = relationship("Account", back_populates="user", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "image": self.image,
            "plan": self.plan,
            "emailVerified": self.email_verified.isoformat() if self.email_verified else None,
        }


class Account(Base):
    """An OAuth identity linked to a local user."""

    __tablename__ = "accounts"
    __table_args__ = (UniqueConstraint("provider", "provider_account_id"),)

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(32), nullable=False, default="oauth")
    provider = Column(String(64), nullable=False)
    provider_account_id = Column(String(255), nullable=False)
    access_token = Column(String(1024), nullable=True)
    scope = Column(String(255), nullable=True)

    user = relationship("User", back_populates="accounts")
