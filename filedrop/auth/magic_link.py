# filedrop/auth/magic_link.py
import hashlib
import logging
import secrets
import smtplib
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode, urlsplit

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup, escape
from sqlalchemy.orm import Session as DBSession

from filedrop.core.config import Settings
from filedrop.core.exceptions import DeliveryError
from filedrop.core.mail import build_message
from filedrop.models.verification_token import VerificationToken

logger = logging.getLogger(__name__)

templates = Environment(
    loader=PackageLoader("filedrop", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class Theme:
    brand_color: str = "#3567e2"
    button_text: str = "#ffffff"


def hash_token(token: str, secret: str) -> str:
    return hashlib.sha256(f"{token}{secret}".encode("utf-8")).hexdigest()


def escape_host(host: str) -> Markup:
    # a zero-width space before each dot stops mail clients from turning
    # the bare domain into a link
    return Markup(str(escape(host)).replace(".", "&#8203;."))


def render_html(url: str, host: str, theme: Theme = Theme()) -> str:
    color = {
        "background": "#f3f4f6",
        "text": "#1f2937",
        "main_background": "#ffffff",
        "button_background": theme.brand_color,
        "button_border": theme.brand_color,
        "button_text": theme.button_text,
        "secondary_text": "#6b7280",
    }
    template = templates.get_template("email/sign_in.html")
    return template.render(url=url, host=escape_host(host), color=color)


def render_text(url: str, host: str) -> str:
    """Plain body for clients that do not render HTML."""
    return f"Sign in to {host}\n{url}\n\n"


def build_sign_in_url(settings: Settings, email: str, token: str, callback_url: Optional[str] = None) -> str:
    params = {
        "callbackUrl": callback_url or settings.normalized_base_url,
        "token": token,
        "email": email,
    }
    return f"{settings.normalized_base_url}/api/auth/callback/email?{urlencode(params)}"


def create_verification_token(db: DBSession, email: str, settings: Settings, now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    token = secrets.token_hex(32)
    db.add(
        VerificationToken(
            identifier=email,
            token=hash_token(token, settings.secret_key),
            expires=now + timedelta(seconds=settings.email_token_max_age),
        )
    )
    db.commit()
    return token


def send_verification_request(
    db: DBSession,
    email: str,
    settings: Settings,
    transport,
    callback_url: Optional[str] = None,
    theme: Theme = Theme(),
) -> str:
    """Persist a one-time token and mail its sign-in link to `email`.

    Returns the sign-in URL. Raises DeliveryError if the transport rejects
    any recipient or cannot send at all; the unsent token is removed.
    """
    token = create_verification_token(db, email, settings)
    url = build_sign_in_url(settings, email, token, callback_url)
    host = urlsplit(url).netloc

    message = build_message(
        to=email,
        sender=settings.email_from,
        subject=f"Sign in to {host}",
        text=render_text(url, host),
        html=render_html(url, host, theme),
    )
    try:
        failed = [address for address in transport.send(message) if address]
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Could not send sign-in link to %s: %s", email, e)
        discard_verification_token(db, email, token, settings)
        raise DeliveryError([email], error=str(e) or type(e).__name__)
    if failed:
        discard_verification_token(db, email, token, settings)
        raise DeliveryError(failed)

    logger.info("Sent sign-in link to %s", email)
    return url


def discard_verification_token(db: DBSession, email: str, token: str, settings: Settings) -> None:
    """Drop a token whose link never reached the user."""
    db.query(VerificationToken).filter(
        VerificationToken.identifier == email,
        VerificationToken.token == hash_token(token, settings.secret_key),
    ).delete()
    db.commit()


def use_verification_token(
    db: DBSession,
    email: str,
    token: str,
    settings: Settings,
    now: Optional[datetime] = None,
) -> bool:
    """Consume a magic-link token. Each token works at most once."""
    if not email or not token:
        return False
    now = now or datetime.utcnow()

    record = (
        db.query(VerificationToken)
        .filter(
            VerificationToken.identifier == email,
            VerificationToken.token == hash_token(token, settings.secret_key),
        )
        .first()
    )
    if not record:
        return False

    valid = record.expires > now
    db.delete(record)
    db.commit()
    return valid
