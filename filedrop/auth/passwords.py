# filedrop/auth/passwords.py
import logging

from sqlalchemy.orm import Session as DBSession
from werkzeug.security import check_password_hash, generate_password_hash

from filedrop.core.exceptions import (
    MissingCredentialError,
    UnknownAccountError,
    ValidationFailure,
    WrongPasswordError,
)
from filedrop.models.user import User

logger = logging.getLogger(__name__)


def hash_password(plain: str) -> str:
    if not plain:
        raise ValidationFailure("Password required")
    return generate_password_hash(plain)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def verify_credentials(db: DBSession, email: str, password: str) -> User:
    """Return the user owning `email` if `password` matches its stored hash.

    Raises a distinct error for each way the check can fail so the caller
    can tell an unknown account apart from a wrong password.
    """
    email = normalize_email(email)
    if not email or not password:
        raise ValidationFailure("Email and password required")

    user = db.query(User).filter(User.email == email).first()
    if not user:
        logger.info("Credential sign-in for unknown account")
        raise UnknownAccountError()

    if not user.hashed_password:
        logger.info("Credential sign-in for user %s without a password", user.id)
        raise MissingCredentialError()

    if not check_password_hash(user.hashed_password, password):
        logger.info("Credential sign-in with wrong password for user %s", user.id)
        raise WrongPasswordError()

    return user
