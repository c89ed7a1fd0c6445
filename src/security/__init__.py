# Identity resolution and user lookups

from .models import UserModel, UserRole
from .repository import UserRepository
from .controller import SecurityController

__all__ = [
    "UserModel",
    "UserRole",
    "UserRepository",
    "SecurityController",
]
