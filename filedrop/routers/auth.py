# filedrop/routers/auth.py
import logging
import secrets
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session as DBSession

from filedrop.auth.providers import provider_info
from filedrop.auth.redirect import resolve_redirect
from filedrop.auth.session import (
    clear_session_cookie,
    get_session,
    issue_session_token,
    set_session_cookie,
)
from filedrop.core.exceptions import NotFoundError, OAuthError
from filedrop.models.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

STATE_COOKIE = "oauth_state"
CALLBACK_COOKIE = "oauth_callback_url"
STATE_MAX_AGE = 900


class CredentialsInput(BaseModel):
    email: str = ""
    password: str = ""
    callbackUrl: Optional[str] = None


class EmailSignInInput(BaseModel):
    email: EmailStr
    callbackUrl: Optional[str] = None


def _provider(request: Request, provider_id: str):
    provider = request.app.state.providers.get(provider_id)
    if provider is None:
        raise NotFoundError("Provider", provider=provider_id)
    return provider


def _sign_in(response, user, settings, provider_id: str) -> str:
    token = issue_session_token(user, settings)
    set_session_cookie(response, token, settings)
    logger.info("User %s signed in with %s", user.id, provider_id)
    return token


@router.get("/providers")
def providers(request: Request):
    settings = request.app.state.settings
    return {pid: provider_info(p, settings) for pid, p in request.app.state.providers.items()}


@router.get("/session")
def session(request: Request):
    current = get_session(request)
    return current.to_dict() if current else {}


# --- email + password ---
@router.post("/callback/credentials")
def credentials_callback(
    payload: CredentialsInput,
    request: Request,
    response: Response,
    db: DBSession = Depends(get_db),
):
    settings = request.app.state.settings
    user = _provider(request, "credentials").verify(db, {"email": payload.email, "password": payload.password})

    url = resolve_redirect(payload.callbackUrl or "", settings.normalized_base_url)
    # bearer clients read the token from the body, browsers get the cookie
    token = _sign_in(response, user, settings, "credentials")
    return {"url": url, "token": token}


# --- magic link ---
@router.post("/signin/email")
def email_sign_in(payload: EmailSignInInput, request: Request, db: DBSession = Depends(get_db)):
    url = _provider(request, "email").initiate(db, {"email": payload.email, "callbackUrl": payload.callbackUrl})
    return {"url": url}


@router.get("/verify-request")
def verify_request(provider: str = Query("email"), kind: str = Query("email", alias="type")):
    # where the client lands after asking for a magic link
    return {
        "message": "Check your email",
        "detail": "A sign in link has been sent to your email address.",
        "provider": provider,
        "type": kind,
    }


@router.get("/callback/email")
def email_callback(
    request: Request,
    token: str = Query(""),
    email: str = Query(""),
    callbackUrl: str = Query(""),
    db: DBSession = Depends(get_db),
):
    settings = request.app.state.settings
    user = _provider(request, "email").verify(db, {"email": email, "token": token})

    response = RedirectResponse(url=resolve_redirect(callbackUrl, settings.normalized_base_url), status_code=303)
    _sign_in(response, user, settings, "email")
    return response


# --- GitHub OAuth ---
@router.get("/signin/github")
def github_sign_in(request: Request, callbackUrl: str = Query(""), db: DBSession = Depends(get_db)):
    settings = request.app.state.settings
    state = secrets.token_urlsafe(16)
    url = _provider(request, "github").initiate(db, {"state": state})

    response = RedirectResponse(url=url, status_code=303)
    cookie = {"max_age": STATE_MAX_AGE, "httponly": True, "samesite": "lax", "secure": settings.cookie_secure}
    response.set_cookie(STATE_COOKIE, state, **cookie)
    response.set_cookie(CALLBACK_COOKIE, resolve_redirect(callbackUrl, settings.normalized_base_url), **cookie)
    return response


@router.get("/callback/github")
def github_callback(
    request: Request,
    code: str = Query(""),
    state: str = Query(""),
    db: DBSession = Depends(get_db),
):
    settings = request.app.state.settings
    provider = _provider(request, "github")

    expected = request.cookies.get(STATE_COOKIE, "")
    if not expected or not secrets.compare_digest(expected, state):
        logger.warning("GitHub callback with mismatched state")
        raise OAuthError(provider.id, "OAuth state mismatch")

    user = provider.verify(db, {"code": code})

    target = resolve_redirect(request.cookies.get(CALLBACK_COOKIE, ""), settings.normalized_base_url)
    response = RedirectResponse(url=target, status_code=303)
    response.delete_cookie(STATE_COOKIE)
    response.delete_cookie(CALLBACK_COOKIE)
    _sign_in(response, user, settings, provider.id)
    return response


# --- sign out ---
@router.post("/signout")
def sign_out(request: Request, callbackUrl: str = Query("")):
    # tokens are stateless: dropping the cookie is all sign-out can do
    settings = request.app.state.settings
    response = JSONResponse({"url": resolve_redirect(callbackUrl, settings.normalized_base_url)})
    clear_session_cookie(response, settings)
    return response
