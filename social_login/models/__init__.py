from .credential import Credential
from .user import User

__all__ = [
    "User",
    "Credential",
]
