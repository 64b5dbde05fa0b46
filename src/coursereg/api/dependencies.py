"""FastAPI dependencies for dependency injection."""

from __future__ import annotations

from collections.abc import Generator  # noqa: TC003
from typing import Annotated

from fastapi import Depends, Header

from coursereg.config import Settings
from coursereg.store import RegistrationStore
from coursereg.workflow import (
    Actor,
    CatalogService,
    CourseUploadService,
    CreditRule,
    RegistrationService,
    Role,
)


class MissingIdentityError(Exception):
    """Request carries no usable X-User-Id / X-User-Role headers."""

    kind = "AuthenticationError"


class Services:
    """Store and services sharing one database."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.store = RegistrationStore(settings.db_path)
        self.catalog = CatalogService(self.store)
        self.registrations = RegistrationService(
            self.store,
            credit_rule=CreditRule(settings.max_credits),
            card_prefix=settings.card_prefix,
        )
        self.course_uploads = CourseUploadService(self.store, self.registrations)

    def close(self) -> None:
        self.store.close()


# Global Services instance (initialized on app startup)
_services: Services | None = None


def init_services(settings: Settings | None = None) -> Services:
    """Initialize the global Services instance."""
    global _services  # noqa: PLW0603
    _services = Services(settings if settings is not None else Settings.from_env())
    return _services


def close_services() -> None:
    """Close the global Services instance."""
    global _services  # noqa: PLW0603
    if _services is not None:
        _services.close()
        _services = None


def get_services() -> Generator[Services, None, None]:
    """Dependency that provides the Services instance."""
    if _services is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    yield _services


ServicesDep = Annotated[Services, Depends(get_services)]


def get_catalog(services: ServicesDep) -> CatalogService:
    return services.catalog


def get_registration_service(services: ServicesDep) -> RegistrationService:
    return services.registrations


def get_course_upload_service(services: ServicesDep) -> CourseUploadService:
    return services.course_uploads


CatalogDep = Annotated[CatalogService, Depends(get_catalog)]
RegistrationServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]
CourseUploadServiceDep = Annotated[CourseUploadService, Depends(get_course_upload_service)]


def get_actor(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """Build the calling Actor from identity headers set by the auth gateway."""
    if not x_user_id or not x_user_role:
        raise MissingIdentityError("Missing X-User-Id or X-User-Role header")
    try:
        role = Role(x_user_role.upper())
    except ValueError as e:
        raise MissingIdentityError(f"Unknown role '{x_user_role}'") from e
    return Actor(id=x_user_id, role=role)


ActorDep = Annotated[Actor, Depends(get_actor)]
