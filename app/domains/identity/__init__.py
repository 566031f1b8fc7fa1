from app.domains.identity.entities import User, IdentityRef
from app.domains.identity.schemas import (
    UserBase, UserCreate, UserLogin, UserResponse, Token
)

__all__ = [
    "User", "IdentityRef",
    "UserBase", "UserCreate", "UserLogin", "UserResponse", "Token"
]
