"""
Reset Endpoints
===============
HTTP surface for the password-reset flow.

Policy outcomes (cooldown, limits, wrong or expired code) are answered
directly; infrastructure failures become user-friendly 5xx responses.
"""

from fastapi import APIRouter, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
import structlog

from .errors import UserErrors
from .exceptions import (
    StoreUnavailableError,
    HashingError,
    EmailDeliveryError,
    UpstreamServiceError,
)
from .otp.models import DenyReason, VerifyFailure
from .reset.flow import PasswordResetFlow

logger = structlog.get_logger(__name__)

DENIAL_MESSAGES = {
    DenyReason.COOLDOWN: "Please wait before requesting another code.",
    DenyReason.LIMIT: "Too many resends. Please try again later.",
}

VERIFY_STATUS = {
    VerifyFailure.EXPIRED: 400,
    VerifyFailure.INVALID_CODE: 400,
    VerifyFailure.TOO_MANY_ATTEMPTS: 429,
}


class StartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)


class VerifyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1)
    otp: str = Field(..., min_length=1, pattern=r"^\d+$")
    new_password: str = Field(..., alias="newPassword", min_length=8)


def _invalid_request(details) -> JSONResponse:
    return JSONResponse({"ok": False, "error": "invalid_request", "details": details}, status_code=400)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies get a 400 in the same {ok, error} shape as every other answer."""
    details = [
        ".".join(str(part) for part in error["loc"] if part != "body") + ": " + error["msg"]
        for error in exc.errors()
    ]
    logger.info("Invalid request body", path=request.url.path, errors=details)
    return _invalid_request(details)


def _infrastructure_error(exc: Exception) -> HTTPException:
    if isinstance(exc, StoreUnavailableError):
        return UserErrors.store_unavailable(str(exc))
    if isinstance(exc, HashingError):
        return UserErrors.hashing_failed(str(exc))
    if isinstance(exc, EmailDeliveryError):
        return UserErrors.email_failed(str(exc))
    return UserErrors.directory_unavailable(str(exc))


def create_reset_router(flow: PasswordResetFlow) -> APIRouter:
    """Create the /auth/otp router bound to a reset flow."""
    router = APIRouter(prefix="/auth/otp", tags=["Password Reset"])
    code_length = flow.manager.config.code_length

    @router.post("/start")
    async def start_reset(body: StartRequest):
        """Send a code to the user's email (or a reminder if one is live)."""
        try:
            result = await flow.start(body.user_id)
        except (StoreUnavailableError, HashingError, EmailDeliveryError, UpstreamServiceError) as e:
            raise _infrastructure_error(e) from e

        if not result.ok:
            content = {"ok": False, "error": DENIAL_MESSAGES[result.reason], "reason": result.reason.value}
            if result.retry_after_ms is not None:
                content["retryInMs"] = result.retry_after_ms
            return JSONResponse(content, status_code=429)

        return {
            "ok": True,
            "expiresInMs": result.expires_in_ms,
            "ttlMs": result.ttl_ms,
            "resendCooldownMs": result.resend_cooldown_ms,
            "maxResends": result.max_resends,
        }

    @router.post("/verify")
    async def verify_reset(body: VerifyRequest):
        """Verify the code and set the new password."""
        if len(body.otp) != code_length:
            return _invalid_request([f"otp: must be {code_length} digits"])

        try:
            result = await flow.complete(body.user_id, body.otp, body.new_password)
        except UpstreamServiceError as e:
            logger.error("Password update failed", user_id=body.user_id, error=str(e))
            raise UserErrors.password_update_failed(str(e)) from e
        except (StoreUnavailableError, HashingError) as e:
            raise _infrastructure_error(e) from e

        if not result.ok:
            return JSONResponse(
                {"ok": False, "error": result.reason.value},
                status_code=VERIFY_STATUS[result.reason],
            )
        return {"ok": True}

    return router
