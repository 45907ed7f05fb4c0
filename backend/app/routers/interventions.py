"""
Router pour la consultation des interventions.
La création passe exclusivement par POST /api/sync (ids générés hors-ligne).
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import NotFoundError
from app.schemas.intervention import InterventionOut
from app.security import require_capability
from app.services import intervention_service
from app.services.permissions import INTERVENTIONS_READ, Principal

router = APIRouter(prefix="/api/v1/interventions", tags=["Interventions"])


@router.get("", response_model=List[InterventionOut], summary="Lister les interventions")
def list_interventions(
    station_id: Optional[uuid.UUID] = Query(None, alias="stationId"),
    agent_id: Optional[uuid.UUID] = Query(None, alias="agentId"),
    site_id: Optional[uuid.UUID] = Query(None, alias="siteId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(INTERVENTIONS_READ)),
):
    """Filtrables par station, agent ou site ; les plus récentes d'abord."""
    return intervention_service.get_interventions(db, principal, station_id, agent_id, site_id)


@router.get("/{intervention_id}", response_model=InterventionOut, summary="Détail d'une intervention")
def get_intervention(
    intervention_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(INTERVENTIONS_READ)),
):
    try:
        return intervention_service.get_intervention(db, intervention_id, principal)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
