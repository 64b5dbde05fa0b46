"""REST API for CourseReg."""

from coursereg.api.app import app, create_app
from coursereg.api.models import (
    APIResponse,
    CourseUploadResponse,
    RegistrationResponse,
)

__all__ = [
    "APIResponse",
    "CourseUploadResponse",
    "RegistrationResponse",
    "app",
    "create_app",
]
