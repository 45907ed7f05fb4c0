"""
Router pour les sites clients.
Lecture pour tous les rôles (un client ne voit que ses sites), écriture superviseur / admin.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import NotFoundError
from app.schemas.site import SiteCreate, SiteDetailResponse, SiteResponse, SiteUpdate
from app.security import require_capability
from app.services import site_service
from app.services.permissions import SITES_READ, SITES_WRITE, Principal

router = APIRouter(prefix="/api/v1/sites", tags=["Sites"])


@router.get("", response_model=List[SiteResponse], summary="Lister les sites")
def list_sites(
    client_id: Optional[uuid.UUID] = Query(None, alias="clientId"),
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(SITES_READ)),
):
    """Sites actifs triés par nom ; `includeInactive=true` inclut les sites désactivés."""
    return site_service.get_sites(db, principal, client_id, include_inactive)


@router.get("/{site_id}", response_model=SiteDetailResponse, summary="Détail d'un site avec ses stations")
def get_site(
    site_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(SITES_READ)),
):
    try:
        return site_service.get_site(db, site_id, principal)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("", response_model=SiteResponse, status_code=201, summary="Créer un site")
def create_site(
    data: SiteCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(SITES_WRITE)),
):
    return site_service.create_site(db, data)


@router.put("/{site_id}", response_model=SiteResponse, summary="Modifier un site")
def update_site(
    site_id: uuid.UUID,
    data: SiteUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(SITES_WRITE)),
):
    """Seuls les champs fournis sont modifiés."""
    try:
        return site_service.update_site(db, site_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.delete("/{site_id}", status_code=204, summary="Désactiver un site")
def deactivate_site(
    site_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(SITES_WRITE)),
):
    """
    Désactive un site (suppression logique, isActive → false).
    Les stations et leurs interventions sont conservées pour l'historique.
    """
    success = site_service.deactivate_site(db, site_id)
    if not success:
        raise HTTPException(status_code=404, detail="Site introuvable.")
