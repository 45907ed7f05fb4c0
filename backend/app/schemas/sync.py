"""
Schémas Pydantic pour la synchronisation bidirectionnelle (ISyncRequest / ISyncResponse).
Endpoint : POST /api/sync

Les enregistrements du batch sont reçus bruts (dict) : un enregistrement mal
formé est rejeté individuellement par le service, sans faire échouer le batch.
"""

import uuid
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from app.config import settings
from app.schemas.common import CamelModel, UtcDatetime
from app.schemas.intervention import InterventionOut
from app.schemas.photo import PhotoOut
from app.schemas.site import SiteResponse
from app.schemas.station import StationResponse


class SyncRequest(CamelModel):
    """Corps de la requête : batch hors-ligne + dernier watermark connu du mobile."""

    last_sync_timestamp: int = Field(ge=0)   # epoch ms, 0 = première synchronisation
    interventions: List[Dict[str, Any]] = []
    photos: List[Dict[str, Any]] = []

    @model_validator(mode="after")
    def batch_not_too_large(self):
        total = len(self.interventions) + len(self.photos)
        if total > settings.SYNC_MAX_BATCH_SIZE:
            raise ValueError(
                f"Batch trop grand : maximum {settings.SYNC_MAX_BATCH_SIZE} enregistrements par requête."
            )
        return self


class SyncRecordError(CamelModel):
    """Rejet d'un enregistrement du batch ; le mobile le garde en isSynchronized=false."""

    id: Optional[str] = None
    entity: str        # intervention, photo
    code: str          # VALIDATION_ERROR, IDENTITY_CONFLICT
    message: str


class SyncResponse(CamelModel):
    """Delta depuis lastSyncTimestamp + nouveau watermark + rapport du batch."""

    sites: List[SiteResponse] = []
    stations: List[StationResponse] = []
    interventions: List[InterventionOut] = []
    photos: List[PhotoOut] = []
    timestamp: int                 # à renvoyer comme lastSyncTimestamp au prochain appel
    accepted: List[str] = []       # ids insérés par cet appel
    duplicate: List[str] = []      # ids déjà présents à l'identique (rejeu idempotent)
    errors: List[SyncRecordError] = []


class SyncConflictResponse(CamelModel):
    id: uuid.UUID
    entity_kind: str
    record_id: uuid.UUID
    agent_id: Optional[uuid.UUID] = None
    submitted_payload: Dict[str, Any]
    stored_payload: Dict[str, Any]
    detected_at: UtcDatetime
    resolved: bool
    resolved_at: Optional[UtcDatetime] = None
    resolved_by: Optional[uuid.UUID] = None
