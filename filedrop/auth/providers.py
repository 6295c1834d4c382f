# filedrop/auth/providers.py
"""Sign-in providers.

Each provider has the same two-step shape:

- `initiate(db, params)` starts a sign-in and returns the URL the client
  should go to next (a form target, a "check your email" page, or the
  OAuth provider's authorize page).
- `verify(db, params)` finishes it and returns the signed-in `User`, or
  raises an `AuthenticationError`.

The set of providers is closed: `Provider` lists every variant and
`build_providers` decides which are enabled from the settings.
"""

import logging
from datetime import datetime
from typing import Optional, Union
from urllib.parse import urlencode

import httpx
from sqlalchemy.orm import Session as DBSession

from filedrop.auth.magic_link import Theme, send_verification_request, use_verification_token
from filedrop.auth.passwords import normalize_email, verify_credentials
from filedrop.core.config import Settings
from filedrop.core.exceptions import OAuthError, ValidationFailure, VerificationError
from filedrop.models.user import Account, User

logger = logging.getLogger(__name__)


def _provider_urls(settings: Settings, provider_id: str) -> dict:
    base = settings.normalized_base_url
    return {
        "signinUrl": f"{base}/api/auth/signin/{provider_id}",
        "callbackUrl": f"{base}/api/auth/callback/{provider_id}",
    }


class CredentialsProvider:
    id = "credentials"
    name = "Credentials"
    type = "credentials"

    def __init__(self, settings: Settings):
        self.settings = settings

    def initiate(self, db: DBSession, params: dict) -> str:
        # nothing to prepare, the client posts email + password straight back
        return _provider_urls(self.settings, self.id)["callbackUrl"]

    def verify(self, db: DBSession, params: dict) -> User:
        return verify_credentials(db, params.get("email", ""), params.get("password", ""))


class EmailProvider:
    id = "email"
    name = "Email"
    type = "email"

    def __init__(self, settings: Settings, transport, theme: Theme = Theme()):
        self.settings = settings
        self.transport = transport
        self.theme = theme

    def initiate(self, db: DBSession, params: dict) -> str:
        email = normalize_email(params.get("email", ""))
        if not email:
            raise ValidationFailure("Email required")
        send_verification_request(
            db,
            email,
            self.settings,
            self.transport,
            callback_url=params.get("callbackUrl"),
            theme=self.theme,
        )
        return f"{self.settings.normalized_base_url}/api/auth/verify-request?provider=email&type=email"

    def verify(self, db: DBSession, params: dict) -> User:
        email = normalize_email(params.get("email", ""))
        if not use_verification_token(db, email, params.get("token", ""), self.settings):
            raise VerificationError()

        user = db.query(User).filter(User.email == email).first()
        if not user:
            user = User(email=email)
            db.add(user)
            logger.info("Created user for %s on first email sign-in", email)
        if not user.email_verified:
            user.email_verified = datetime.utcnow()
        db.commit()
        db.refresh(user)
        return user


class GithubProvider:
    id = "github"
    name = "GitHub"
    type = "oauth"

    authorize_url = "https://github.com/login/oauth/authorize"
    token_url = "https://github.com/login/oauth/access_token"
    api_url = "https://api.github.com"
    scope = "read:user user:email"

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.client = client or httpx.Client(timeout=10)

    @property
    def redirect_uri(self) -> str:
        return _provider_urls(self.settings, self.id)["callbackUrl"]

    def initiate(self, db: DBSession, params: dict) -> str:
        query = {
            "client_id": self.settings.github_id,
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "state": params["state"],
        }
        return f"{self.authorize_url}?{urlencode(query)}"

    def verify(self, db: DBSession, params: dict) -> User:
        code = params.get("code")
        if not code:
            raise OAuthError(self.id, "Missing authorization code")
        try:
            access_token, scope = self._exchange_code(code)
            profile = self._fetch_profile(access_token)
        except httpx.HTTPError as e:
            logger.warning("GitHub OAuth request failed: %s", e)
            raise OAuthError(self.id, "Could not reach GitHub")
        except ValueError as e:
            # an HTML error or rate-limit page instead of JSON
            logger.warning("GitHub OAuth returned an unreadable response: %s", e)
            raise OAuthError(self.id, "Unexpected response from GitHub")
        return self._link_user(db, profile, access_token, scope)

    # --- GitHub API calls ---

    def _exchange_code(self, code: str) -> tuple:
        response = self.client.post(
            self.token_url,
            data={
                "client_id": self.settings.github_id,
                "client_secret": self.settings.github_secret,
                "code": code,
                "redirect_uri": self.redirect_uri,
            },
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("token response is not an object")
        access_token = payload.get("access_token")
        if not access_token:
            raise OAuthError(self.id, payload.get("error_description") or "GitHub did not return a token")
        return access_token, payload.get("scope")

    def _fetch_profile(self, access_token: str) -> dict:
        headers = {"Authorization": f"Bearer {access_token}", "Accept": "application/json"}
        response = self.client.get(f"{self.api_url}/user", headers=headers)
        response.raise_for_status()
        profile = response.json()
        if not isinstance(profile, dict):
            raise ValueError("user response is not an object")

        # private emails only show up on the emails endpoint
        if not profile.get("email"):
            response = self.client.get(f"{self.api_url}/user/emails", headers=headers)
            response.raise_for_status()
            emails = response.json() or []
            if not isinstance(emails, list):
                raise ValueError("emails response is not a list")
            primary = next((e for e in emails if e.get("primary") and e.get("verified")), None)
            profile["email"] = primary["email"] if primary else None
        return profile

    def _link_user(self, db: DBSession, profile: dict, access_token: str, scope: Optional[str]) -> User:
        account_id = str(profile.get("id") or "")
        email = normalize_email(profile.get("email") or "")
        if not account_id or not email:
            raise OAuthError(self.id, "GitHub account has no verified email")

        account = (
            db.query(Account)
            .filter(Account.provider == self.id, Account.provider_account_id == account_id)
            .first()
        )
        if account:
            account.access_token = access_token
            account.scope = scope
            db.commit()
            return account.user

        if db.query(User).filter(User.email == email).first():
            # refuse to attach a new OAuth identity to an existing account
            raise OAuthError(
                self.id,
                "To confirm your identity, sign in with the same account you used originally",
            )

        user = User(
            email=email,
            name=profile.get("name") or profile.get("login"),
            image=profile.get("avatar_url"),
            email_verified=datetime.utcnow(),
        )
        user.accounts.append(
            Account(
                provider=self.id,
                provider_account_id=account_id,
                access_token=access_token,
                scope=scope,
            )
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created user %s from GitHub account %s", user.id, account_id)
        return user


Provider = Union[CredentialsProvider, EmailProvider, GithubProvider]


def provider_info(provider: Provider, settings: Settings) -> dict:
    return {"id": provider.id, "name": provider.name, "type": provider.type, **_provider_urls(settings, provider.id)}


def build_providers(settings: Settings, transport=None, http_client: Optional[httpx.Client] = None) -> dict:
    providers = [CredentialsProvider(settings)]
    if transport is not None:
        providers.append(EmailProvider(settings, transport))
    if settings.github_enabled:
        providers.append(GithubProvider(settings, client=http_client))
    return {provider.id: provider for provider in providers}
