"""
FastAPI application factory - the local bridge the desktop UI talks to.

Run with:
    uvicorn main:create_app --factory
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI

from api.base import success_response
from api.errors import register_error_handlers
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.database import SessionRepository, UserRepository
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityLogger
from auth.security_middleware import AuthMiddleware
from auth.service import AuthService
from auth.session import SessionManager
from clients.json_store_client import BaseStoreClient, JsonStoreClient
from core.audit import AuditLogger
from licensing.api import create_license_router
from licensing.codec import LicenseKeyCodec
from licensing.database import ActivationRepository, LicenseRepository
from licensing.service import LicenseService
from settings import AppSettings

logger = logging.getLogger(__name__)


def build_auth_service(settings: AppSettings, store: BaseStoreClient) -> AuthService:
    """Wire AuthService and its collaborators over one store."""
    config = settings.auth
    hasher = PasswordHasher(config.password_policy, config.legacy_password_policies)
    return AuthService(
        config=config,
        users=UserRepository(store, config, hasher),
        session_manager=SessionManager(SessionRepository(store), config),
        hasher=hasher,
        security_logger=SecurityLogger(store),
        audit=AuditLogger(store),
    )


def build_license_service(settings: AppSettings, store: BaseStoreClient) -> LicenseService:
    """Wire LicenseService and its collaborators over one store."""
    config = settings.license
    return LicenseService(
        config=config,
        licenses=LicenseRepository(store),
        activation=ActivationRepository(store),
        codec=LicenseKeyCodec(config.secret_key, config.key_prefix, config.key_length),
        audit=AuditLogger(store),
    )


def create_app(
    settings: AppSettings | None = None,
    store: BaseStoreClient | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to AppSettings.from_env() (after loading .env)
        store: Defaults to a JsonStoreClient over settings.data_dir
    """
    if settings is None:
        load_dotenv()
        settings = AppSettings.from_env()
    if store is None:
        store = JsonStoreClient(settings.data_dir)

    auth_service = build_auth_service(settings, store)
    license_service = build_license_service(settings, store)

    app = FastAPI(title="Market Manager", version="1.0.0")
    register_error_handlers(app)

    # Starlette runs the last added middleware first
    app.add_middleware(AuthMiddleware, auth_service=auth_service)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(create_auth_router(auth_service), prefix="/auth")
    app.include_router(create_license_router(license_service), prefix="/licenses")

    @app.get("/health")
    async def health():
        return success_response({"status": "ok"})

    app.state.auth_service = auth_service
    app.state.license_service = license_service

    logger.info(f"Market Manager API ready (data dir: {settings.data_dir})")
    return app
