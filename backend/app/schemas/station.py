"""
Schémas Pydantic pour les stations (IStation).
"""

import uuid
from typing import Optional

from pydantic import field_validator, model_validator

from app.schemas.common import CamelModel, Coordinates, UtcDatetime

VALID_STATION_STATUSES = {"active", "inactive", "removed", "damaged"}


class StationCreate(CamelModel):
    identifier: str
    location: Coordinates
    site_id: uuid.UUID
    description: Optional[str] = None
    plan_position_x: Optional[float] = None
    plan_position_y: Optional[float] = None

    @field_validator("identifier")
    @classmethod
    def identifier_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("L'identifiant de la station ne peut pas être vide.")
        return v.strip().upper()


class StationUpdate(CamelModel):
    """Champs descriptifs. Le statut passe par StationStatusUpdate."""
    identifier: Optional[str] = None
    location: Optional[Coordinates] = None
    description: Optional[str] = None
    plan_position_x: Optional[float] = None
    plan_position_y: Optional[float] = None

    @field_validator("identifier")
    @classmethod
    def identifier_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("L'identifiant de la station ne peut pas être vide.")
        return v.strip().upper() if v else v


class StationStatusUpdate(CamelModel):
    status: str
    removal_reason: Optional[str] = None

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: str) -> str:
        if v not in VALID_STATION_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {VALID_STATION_STATUSES}")
        return v

    @model_validator(mode="after")
    def removal_needs_reason(self):
        if self.status == "removed" and not (self.removal_reason or "").strip():
            raise ValueError("Un motif est obligatoire pour retirer une station.")
        return self


class StationResponse(CamelModel):
    id: uuid.UUID
    identifier: str
    location: Coordinates
    description: Optional[str] = None
    plan_position_x: Optional[float] = None
    plan_position_y: Optional[float] = None
    status: str
    removal_reason: Optional[str] = None
    site_id: uuid.UUID
    created_at: UtcDatetime
    updated_at: UtcDatetime


class NearbyStationResponse(StationResponse):
    distance_meters: float
