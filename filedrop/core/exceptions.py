# filedrop/core/exceptions.py
from typing import Any, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class FiledropError(Exception):
    """
    Base exception for the API.

    Every subclass carries a machine-readable code and an HTTP status, and is
    rendered by `filedrop_exception_handler` as
    {"detail": <message>, "code": <code>, "details": {...}}.
    """

    def __init__(
        self,
        message: str,
        code: str = "FILEDROP_ERROR",
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        result = {"detail": self.message, "code": self.code}
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(FiledropError):
    def __init__(self, resource: str = "Resource", **details):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            details=details,
        )


class ValidationFailure(FiledropError):
    def __init__(self, message: str, **details):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)


class ConflictError(FiledropError):
    def __init__(self, message: str, code: str = "CONFLICT", **details):
        super().__init__(message, code=code, status_code=409, details=details)


class UnauthorizedError(FiledropError):
    def __init__(self, message: str = "Not signed in"):
        super().__init__(message, code="UNAUTHORIZED", status_code=401)


# --- authentication failures ---

class AuthenticationError(FiledropError):
    def __init__(self, message: str, code: str = "AUTHENTICATION_FAILED", **details):
        super().__init__(message, code=code, status_code=401, details=details)


class UnknownAccountError(AuthenticationError):
    def __init__(self):
        super().__init__("Email does not exist", code="UNKNOWN_ACCOUNT")


class MissingCredentialError(AuthenticationError):
    def __init__(self):
        super().__init__(
            "Account has no password, sign in with another method",
            code="MISSING_CREDENTIAL",
        )


class WrongPasswordError(AuthenticationError):
    def __init__(self):
        super().__init__("Incorrect password", code="WRONG_PASSWORD")


class VerificationError(AuthenticationError):
    def __init__(self, message: str = "Sign in link is invalid or has expired"):
        super().__init__(message, code="VERIFICATION_FAILED")


class OAuthError(AuthenticationError):
    def __init__(self, provider: str, message: str):
        super().__init__(message, code="OAUTH_FAILED", provider=provider)


class DeliveryError(FiledropError):
    """The mail transport rejected a recipient or could not send at all."""

    def __init__(self, rejected: list[str], error: Optional[str] = None):
        details = {"rejected": rejected}
        if error:
            details["error"] = error
        super().__init__(
            message=f"Email(s) ({', '.join(rejected)}) could not be sent",
            code="DELIVERY_FAILED",
            status_code=502,
            details=details,
        )
        self.rejected = rejected


# --- handlers ---

async def filedrop_exception_handler(request: Request, exc: FiledropError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": {"errors": errors},
        },
    )
