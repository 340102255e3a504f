from .base import Base
from .user import User
from .refresh_token import RefreshToken

# For convenience, export all models
__all__ = [
    "Base",
    "User",
    "RefreshToken",
]
