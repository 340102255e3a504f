from .base import BaseSchema

class PublicUser(BaseSchema):
    """User fields that are safe to return to clients"""
    id: int
    email: str
    name: str
