"""
Schémas Pydantic pour les sites clients (ISite).
"""

import uuid
from typing import List, Optional

from pydantic import field_validator

from app.schemas.common import CamelModel, Coordinates, UtcDatetime
from app.schemas.station import StationResponse


class SiteCreate(CamelModel):
    name: str
    address: str
    description: Optional[str] = None
    client_reference: Optional[str] = None
    location: Optional[Coordinates] = None
    plan_image_path: Optional[str] = None
    client_id: Optional[uuid.UUID] = None

    @field_validator("name", "address")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom et l'adresse du site ne peuvent pas être vides.")
        return v.strip()


class SiteUpdate(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    client_reference: Optional[str] = None
    location: Optional[Coordinates] = None
    plan_image_path: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    is_active: Optional[bool] = None

    @field_validator("name", "address")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom et l'adresse du site ne peuvent pas être vides.")
        return v.strip() if v else v


class SiteResponse(CamelModel):
    id: uuid.UUID
    name: str
    address: str
    description: Optional[str] = None
    client_reference: Optional[str] = None
    location: Optional[Coordinates] = None
    plan_image_path: Optional[str] = None
    is_active: bool
    client_id: Optional[uuid.UUID] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class SiteDetailResponse(SiteResponse):
    """Site avec la liste de ses stations (écran détail du site)."""
    stations: List[StationResponse] = []
