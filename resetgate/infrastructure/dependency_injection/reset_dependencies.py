"""Dependency providers for the password reset endpoints.

Long-lived collaborators (settings, rate limiter, mail transport, email
composer, password hasher) are created by the application factory and kept on
``app.state``. The repository is built per request around its own session.
Tests replace any of these with ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from resetgate.core.config.settings import Settings
from resetgate.core.rate_limiting.limiter import RateLimiter
from resetgate.domain.interfaces.repositories import IUserRepository
from resetgate.domain.interfaces.services import (
    IMailTransport,
    IPasswordHasher,
    IPasswordResetEmailComposer,
)
from resetgate.domain.services.password_reset.reset_flow_controller import ResetFlowController
from resetgate.infrastructure.database.async_db import get_async_db
from resetgate.infrastructure.repositories.user_repository import UserRepository

AsyncDB = Annotated[AsyncSession, Depends(get_async_db)]


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_repository(db: AsyncDB) -> IUserRepository:
    """Factory that returns the SQLAlchemy user repository for this request."""
    return UserRepository(db)


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_mail_transport(request: Request) -> IMailTransport:
    return request.app.state.mail_transport


def get_email_composer(request: Request) -> IPasswordResetEmailComposer:
    return request.app.state.email_composer


def get_password_hasher(request: Request) -> IPasswordHasher:
    return request.app.state.password_hasher


def get_reset_flow_controller(
    settings: Settings = Depends(get_app_settings),
    user_repository: IUserRepository = Depends(get_user_repository),
    mail_transport: IMailTransport = Depends(get_mail_transport),
    email_composer: IPasswordResetEmailComposer = Depends(get_email_composer),
    password_hasher: IPasswordHasher = Depends(get_password_hasher),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
) -> ResetFlowController:
    """Factory that assembles the reset flow controller for one request.

    The controller itself is cheap; everything expensive it uses is shared.
    """
    return ResetFlowController(
        user_repository=user_repository,
        mail_transport=mail_transport,
        email_composer=email_composer,
        password_hasher=password_hasher,
        rate_limiter=rate_limiter,
        settings=settings,
    )
