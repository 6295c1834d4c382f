from sqlalchemy import Column, DateTime, String

from filedrop.models.database import Base


class VerificationToken(Base):
    """One-time magic-link secret. Only the hash of the token is stored."""

    __tablename__ = "verification_tokens"

    token = Column(String(64), primary_key=True)
    identifier = Column(String(255), nullable=False, index=True)
    expires = Column(DateTime, nullable=False)
