# filedrop/main.py
#
# Usage:
#   uvicorn filedrop.main:app --reload
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from filedrop.auth.providers import build_providers
from filedrop.auth.session import load_session
from filedrop.core.config import Settings, get_settings
from filedrop.core.exceptions import (
    FiledropError,
    filedrop_exception_handler,
    validation_exception_handler,
)
from filedrop.core.mail import SmtpTransport
from filedrop.core.storage import ObjectStorage
from filedrop.models import Base
from filedrop.models.database import make_engine, make_session_factory
from filedrop.routers import auth, billing, files, users

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    transport=None,
    storage: Optional[ObjectStorage] = None,
    http_client=None,
) -> FastAPI:
    """Build the application around an explicit settings object.

    Collaborators (mail transport, object storage, GitHub HTTP client) are
    built from the settings unless passed in.
    """
    settings = settings or get_settings()

    engine = make_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)

    if transport is None and settings.email_enabled:
        transport = SmtpTransport.from_settings(settings)
    if storage is None and settings.storage_enabled:
        storage = ObjectStorage.from_settings(settings)

    app = FastAPI(title="filedrop")
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.storage = storage
    app.state.providers = build_providers(settings, transport=transport, http_client=http_client)

    app.add_exception_handler(FiledropError, filedrop_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.middleware("http")
    async def _session_middleware(request: Request, call_next):
        request.state.session = load_session(request)
        return await call_next(request)

    # include our routers
    app.include_router(auth.router)
    app.include_router(files.router)
    app.include_router(users.router)
    app.include_router(billing.router)

    @app.get("/")
    def home(request: Request):
        session = request.state.session
        return {"status": "ok", "signedIn": session is not None}

    logger.info("filedrop ready at %s with providers: %s", settings.base_url, ", ".join(app.state.providers))
    return app


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


_settings = get_settings()
_configure_logging(_settings)
app = create_app(_settings)
