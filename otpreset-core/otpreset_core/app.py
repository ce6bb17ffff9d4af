"""
Application Factory
===================
Wires configuration, store, collaborators and routers into a FastAPI app.

    uvicorn otpreset_core.app:create_app --factory
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
import structlog

from . import __version__
from .health import create_health_router
from .log_config import setup_logging
from .otp.manager import OTPLifecycleManager
from .otp.models import OTPConfig
from .reset.admin_client import UserAdminClient
from .reset.flow import PasswordResetFlow
from .reset.interfaces import Directory, Mailer, PasswordMutator
from .reset.mailer import ConsoleMailer, SMTPMailer
from .router import create_reset_router, validation_error_handler
from .store.base import KeyValueStore
from .store.factory import StoreConfig, create_store

logger = structlog.get_logger(__name__)


def create_mailer(store_config: StoreConfig) -> Mailer:
    backend = os.getenv("EMAIL_BACKEND", "smtp").lower()
    if backend == "console":
        if store_config.is_production:
            raise ValueError("The console mailer cannot be used in production")
        return ConsoleMailer()
    if backend != "smtp":
        raise ValueError(f"Unknown EMAIL_BACKEND: {backend!r}")
    return SMTPMailer()


def create_app(
    otp_config: Optional[OTPConfig] = None,
    store: Optional[KeyValueStore] = None,
    directory: Optional[Directory] = None,
    mailer: Optional[Mailer] = None,
    passwords: Optional[PasswordMutator] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the reset service.

    Anything not passed in is built from environment configuration, once.
    """
    service_name = os.getenv("SERVICE_NAME", "otp-reset")
    if configure_logging:
        setup_logging(
            service_name=service_name,
            level=os.getenv("LOG_LEVEL", "INFO"),
            json_output=os.getenv("LOG_JSON", "true").lower() == "true",
        )

    store_config = StoreConfig.from_env()
    if otp_config is None:
        otp_config = OTPConfig.from_env()
    if store is None:
        store = create_store(store_config)

    admin_client = None
    if directory is None or passwords is None:
        admin_client = UserAdminClient()
        if directory is None:
            directory = admin_client
        if passwords is None:
            passwords = admin_client

    if mailer is None:
        mailer = create_mailer(store_config)

    manager = OTPLifecycleManager(store, otp_config)
    flow = PasswordResetFlow(manager, directory, mailer, passwords)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "service_started",
            store=store.backend,
            ttl_ms=otp_config.ttl_ms,
            resend_cooldown_ms=otp_config.resend_cooldown_ms,
        )
        yield
        await store.close()
        if admin_client is not None:
            await admin_client.aclose()

    app = FastAPI(title=service_name, version=__version__, lifespan=lifespan)
    app.state.flow = flow
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.include_router(create_health_router(service_name, store, version=__version__))
    app.include_router(create_reset_router(flow))
    return app
