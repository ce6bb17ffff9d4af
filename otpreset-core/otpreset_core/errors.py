"""
User-Facing Error Standards
===========================
Friendly error responses for infrastructure failures. Technical detail
goes to the log, never to the user.
"""

from fastapi import HTTPException
import structlog

logger = structlog.get_logger(__name__)


USER_FRIENDLY_MESSAGE = "We could not process your request right now. Please try again in a few minutes."


def create_user_error(
    internal_code: str,
    log_message: str = None,
    status_code: int = 503,
) -> HTTPException:
    """
    Create a user-friendly HTTPException.

    Args:
        internal_code: Internal code for debugging (logged and returned, no detail)
        log_message: Technical message for logs
        status_code: HTTP status code (default 503 to indicate temporary issue)

    Returns:
        HTTPException with user-friendly message
    """
    if log_message:
        logger.warning("user_facing_error", code=internal_code, detail=log_message)

    return HTTPException(
        status_code=status_code,
        detail={
            "ok": False,
            "error": "Service temporarily unavailable",
            "message": USER_FRIENDLY_MESSAGE,
            "code": internal_code,
        },
    )


class UserErrors:
    """Pre-defined errors for common infrastructure failures."""

    @staticmethod
    def store_unavailable(log_message: str = None) -> HTTPException:
        return create_user_error("OTP_STORE_UNAVAILABLE", log_message)

    @staticmethod
    def directory_unavailable(log_message: str = None) -> HTTPException:
        return create_user_error("USER_DIRECTORY_UNAVAILABLE", log_message)

    @staticmethod
    def email_failed(log_message: str = None) -> HTTPException:
        return create_user_error("EMAIL_DELIVERY_FAILED", log_message)

    @staticmethod
    def hashing_failed(log_message: str = None) -> HTTPException:
        return create_user_error("OTP_HASHING_FAILED", log_message, status_code=500)

    @staticmethod
    def password_update_failed(log_message: str = None) -> HTTPException:
        return create_user_error("PASSWORD_UPDATE_FAILED", log_message, status_code=502)
