from .base import BaseSchema
from .user import PublicUser

class TokenPayload(BaseSchema):
    """Identity claim embedded in access and refresh tokens"""
    user_id: int
    email: str

class AccessToken(BaseSchema):
    access_token: str

class SessionTokens(BaseSchema):
    """Token pair issued on registration and login"""
    access_token: str
    refresh_token: str
    user: PublicUser
