# filedrop/auth/session.py
import logging
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt

from filedrop.core.config import Settings
from filedrop.core.exceptions import UnauthorizedError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


@dataclass(frozen=True)
class SessionUser:
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class Session:
    user: SessionUser
    expires: str

    def to_dict(self) -> dict:
        return {"user": asdict(self.user), "expires": self.expires}


def issue_session_token(user, settings: Settings, now: Optional[int] = None) -> str:
    """Sign a stateless session token carrying the user's id and name."""
    issued_at = int(now if now is not None else time.time())
    claims = {
        "sub": user.id,
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "iat": issued_at,
        "exp": issued_at + settings.session_max_age,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_session_token(token: str, settings: Settings, now: Optional[int] = None) -> Optional[Session]:
    if not token:
        return None
    try:
        # expiry is checked below against `now`
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError as e:
        logger.debug("Rejected session token: %s", e)
        return None

    user_id = payload.get("id") or payload.get("sub")
    exp = payload.get("exp")
    if not user_id or not isinstance(exp, int):
        return None

    current = int(now if now is not None else time.time())
    if current >= exp:
        return None

    return Session(
        user=SessionUser(id=str(user_id), name=payload.get("name"), email=payload.get("email")),
        expires=datetime.fromtimestamp(exp, tz=timezone.utc).isoformat(),
    )


# --- helper: read the token from the cookie or an Authorization header ---
def token_from_request(request: Request, settings: Settings) -> Optional[str]:
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value:
        return value.strip()
    return None


def load_session(request: Request) -> Optional[Session]:
    settings = request.app.state.settings
    return decode_session_token(token_from_request(request, settings), settings)


def get_session(request: Request) -> Optional[Session]:
    if hasattr(request.state, "session"):
        return request.state.session
    return load_session(request)


def require_session(request: Request) -> Session:
    session = get_session(request)
    if session is None:
        raise UnauthorizedError()
    return session


def set_session_cookie(response, token: str, settings: Settings) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_max_age,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


def clear_session_cookie(response, settings: Settings) -> None:
    response.delete_cookie(settings.session_cookie_name, path="/")
