"""
Schémas Pydantic pour l'authentification (ILoginRequest / ILoginResponse).
"""

from pydantic import BaseModel

from app.schemas.common import CamelModel
from app.schemas.user import UserResponse


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(CamelModel):
    user: UserResponse
    token: str
    expires_at: int  # epoch ms
