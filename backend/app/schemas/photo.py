"""
Schémas Pydantic pour les photos (IPhoto).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import field_validator

from app.schemas.common import CamelModel, UtcDatetime

VALID_PHOTO_TYPES = {"station", "incident", "consumption", "other"}


class PhotoIn(CamelModel):
    """Photo prise hors-ligne ; peut référencer une intervention du même batch."""
    id: uuid.UUID
    intervention_id: uuid.UUID
    file_path: str
    thumbnail_path: Optional[str] = None
    type: str = "other"
    description: Optional[str] = None
    local_created_at: Optional[datetime] = None

    is_synchronized: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("file_path")
    @classmethod
    def file_path_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le chemin du fichier ne peut pas être vide.")
        return v.strip()

    @field_validator("type")
    @classmethod
    def valid_type(cls, v: str) -> str:
        if v not in VALID_PHOTO_TYPES:
            raise ValueError(f"Type de photo invalide. Valeurs acceptées : {VALID_PHOTO_TYPES}")
        return v


class PhotoOut(CamelModel):
    id: uuid.UUID
    file_path: str
    thumbnail_path: Optional[str] = None
    type: str
    description: Optional[str] = None
    intervention_id: uuid.UUID
    is_synchronized: bool
    local_created_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class PhotoUploadResponse(CamelModel):
    """Chemin opaque à reporter dans le champ filePath de la photo lors de la sync."""
    file_path: str
    size: int
    content_type: Optional[str] = None
