"""
Router pour la synchronisation bidirectionnelle mobile ↔ serveur.
Reçoit le batch hors-ligne d'un agent et renvoie le delta depuis son dernier watermark.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.sync import SyncConflictResponse, SyncRequest, SyncResponse
from app.security import get_current_principal, require_capability
from app.services import sync_service
from app.services.permissions import SYNC_REVIEW_CONFLICTS, Principal

router = APIRouter(prefix="/api/sync", tags=["Synchronisation offline"])


@router.post(
    "",
    response_model=SyncResponse,
    summary="Synchroniser interventions et photos (offline ↔ online)",
)
def synchronize(
    data: SyncRequest,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """
    Reçoit un batch d'interventions et de photos créées hors-ligne et renvoie
    tout ce qui a changé côté serveur depuis `lastSyncTimestamp`.

    Comportement :
    - Idempotent : un id déjà reçu avec les mêmes valeurs est ignoré (`duplicate`)
    - Un id déjà reçu avec des valeurs différentes est rejeté (`errors`, IDENTITY_CONFLICT)
    - Un enregistrement invalide est rejeté seul (`errors`, VALIDATION_ERROR), le reste est commité
    - `timestamp` est le watermark à renvoyer au prochain appel

    403 si le batch contient des interventions d'un autre agent, 503 si la base
    est indisponible : le mobile rejoue alors le batch complet plus tard.
    """
    return sync_service.synchronize(
        db,
        principal,
        data.last_sync_timestamp,
        data.interventions,
        data.photos,
    )


@router.get(
    "/conflicts",
    response_model=List[SyncConflictResponse],
    summary="Conflits d'identité à revoir",
)
def list_conflicts(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(SYNC_REVIEW_CONFLICTS)),
):
    """Enregistrements renvoyés avec un id connu mais des valeurs différentes, non encore traités."""
    return sync_service.get_open_conflicts(db)


@router.post(
    "/conflicts/{conflict_id}/resolve",
    response_model=SyncConflictResponse,
    summary="Marquer un conflit comme traité",
)
def resolve_conflict(
    conflict_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(SYNC_REVIEW_CONFLICTS)),
):
    """L'enregistrement stocké reste inchangé ; seul le conflit est clôturé."""
    try:
        return sync_service.resolve_conflict(db, conflict_id, principal)
    except ValueError as e:
        msg = str(e)
        if "introuvable" in msg:
            raise HTTPException(status_code=404, detail=msg)
        raise HTTPException(status_code=409, detail=msg)
