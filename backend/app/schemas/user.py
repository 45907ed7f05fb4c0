"""
Schémas Pydantic pour les utilisateurs.
Le hash du mot de passe n'est jamais exposé.
"""

import uuid
from typing import Optional

from pydantic import EmailStr, field_validator

from app.schemas.common import CamelModel, UtcDatetime

VALID_ROLES = {"agent", "supervisor", "client", "admin"}


class UserCreate(CamelModel):
    first_name: str
    last_name: str
    email: EmailStr
    password: str
    role: str = "agent"

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom et le prénom ne peuvent pas être vides.")
        return v.strip()

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Le mot de passe doit contenir au moins 8 caractères.")
        return v

    @field_validator("role")
    @classmethod
    def valid_role(cls, v: str) -> str:
        if v not in VALID_ROLES:
            raise ValueError(f"Rôle invalide. Valeurs acceptées : {VALID_ROLES}")
        return v


class UserResponse(CamelModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: str
    is_active: bool
    last_login_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime
