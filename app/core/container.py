from dataclasses import dataclass

from ..application.services.auth_service import AuthService
from ..domain.ports.email import EmailDispatcher
from ..domain.ports.persistence import UserRepository
from .config import Settings


@dataclass(slots=True)
class ApplicationContainer:
    """Dependency registry shared across the FastAPI application lifecycle."""

    settings: Settings
    user_repository: UserRepository
    email_dispatcher: EmailDispatcher
    auth_service: AuthService
