"""
Schémas Pydantic pour les interventions (IIntervention).

InterventionIn  : enregistrement créé hors-ligne par l'app mobile et envoyé
                  dans un batch de synchronisation (id généré côté client).
InterventionOut : copie canonique renvoyée par le serveur.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import field_validator

from app.schemas.common import CamelModel, UtcDatetime

VALID_CONSUMPTION_LEVELS = {"none", "low", "medium", "high"}
VALID_INCIDENT_TYPES = {"none", "station_damaged", "station_moved", "non_target_animal", "other"}


class InterventionIn(CamelModel):
    id: uuid.UUID                          # Clé d'idempotence générée par le mobile
    station_id: uuid.UUID
    agent_id: Optional[uuid.UUID] = None   # Par défaut : l'agent authentifié
    consumption_level: str = "none"
    notes: Optional[str] = None
    incident_type: str = "none"
    incident_description: Optional[str] = None
    bait_replaced: bool = False
    station_cleaned: bool = False
    local_created_at: Optional[datetime] = None

    # Champs gérés par le serveur : acceptés pour compatibilité, ignorés
    is_synchronized: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("consumption_level")
    @classmethod
    def valid_consumption_level(cls, v: str) -> str:
        if v not in VALID_CONSUMPTION_LEVELS:
            raise ValueError(f"Niveau de consommation invalide. Valeurs acceptées : {VALID_CONSUMPTION_LEVELS}")
        return v

    @field_validator("incident_type")
    @classmethod
    def valid_incident_type(cls, v: str) -> str:
        if v not in VALID_INCIDENT_TYPES:
            raise ValueError(f"Type d'incident invalide. Valeurs acceptées : {VALID_INCIDENT_TYPES}")
        return v


class InterventionOut(CamelModel):
    id: uuid.UUID
    consumption_level: str
    notes: Optional[str] = None
    incident_type: str
    incident_description: Optional[str] = None
    bait_replaced: bool
    station_cleaned: bool
    agent_id: uuid.UUID
    station_id: uuid.UUID
    is_synchronized: bool
    local_created_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime
