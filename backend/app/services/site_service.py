"""
Service métier pour les sites clients.
Un site n'est jamais supprimé : la désactivation conserve l'historique des stations.
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models.site import Site
from app.schemas.common import Coordinates
from app.schemas.site import SiteCreate, SiteDetailResponse, SiteResponse, SiteUpdate
from app.services.permissions import SITES_READ, Principal, can
from app.services.station_service import station_to_response

logger = logging.getLogger(__name__)


def site_to_response(site: Site) -> SiteResponse:
    location = None
    if site.latitude is not None and site.longitude is not None:
        location = Coordinates(latitude=site.latitude, longitude=site.longitude)
    return SiteResponse(
        id=site.id,
        name=site.name,
        address=site.address,
        description=site.description,
        client_reference=site.client_reference,
        location=location,
        plan_image_path=site.plan_image_path,
        is_active=site.is_active,
        client_id=site.client_id,
        created_at=site.created_at,
        updated_at=site.updated_at,
    )


def get_sites(
    db: Session,
    principal: Principal,
    client_id: Optional[uuid.UUID] = None,
    include_inactive: bool = False,
) -> List[SiteResponse]:
    """Liste les sites par nom. Un client ne voit que les siens."""
    query = select(Site).order_by(Site.name)
    if client_id is not None:
        query = query.where(Site.client_id == client_id)
    if not include_inactive:
        query = query.where(Site.is_active.is_(True))

    sites = db.execute(query).scalars().all()
    return [site_to_response(s) for s in sites if can(principal, SITES_READ, s)]


def get_site(db: Session, site_id: uuid.UUID, principal: Principal) -> SiteDetailResponse:
    """Détail d'un site avec ses stations. Lève NotFoundError si absent ou non visible."""
    site = db.get(Site, site_id)
    if site is None or not can(principal, SITES_READ, site):
        raise NotFoundError(f"Site {site_id} introuvable.")

    return SiteDetailResponse(
        **site_to_response(site).model_dump(),
        stations=[station_to_response(st) for st in site.stations],
    )


def create_site(db: Session, data: SiteCreate) -> SiteResponse:
    site = Site(
        name=data.name,
        address=data.address,
        description=data.description,
        client_reference=data.client_reference,
        latitude=data.location.latitude if data.location else None,
        longitude=data.location.longitude if data.location else None,
        plan_image_path=data.plan_image_path,
        client_id=data.client_id,
        is_active=True,
    )
    db.add(site)
    db.commit()
    db.refresh(site)

    logger.info("Site créé : %s (%s)", site.name, site.id)
    return site_to_response(site)


def update_site(db: Session, site_id: uuid.UUID, data: SiteUpdate) -> SiteResponse:
    """Met à jour les champs fournis. Lève NotFoundError si le site n'existe pas."""
    site = db.get(Site, site_id)
    if site is None:
        raise NotFoundError(f"Site {site_id} introuvable.")

    update_data = data.model_dump(exclude_unset=True, exclude={"location"})
    for field, value in update_data.items():
        setattr(site, field, value)
    if "location" in data.model_fields_set:
        site.latitude = data.location.latitude if data.location else None
        site.longitude = data.location.longitude if data.location else None

    db.commit()
    db.refresh(site)
    return site_to_response(site)


def deactivate_site(db: Session, site_id: uuid.UUID) -> bool:
    """
    Désactive un site (suppression logique).
    Ses stations restent en base pour l'audit. Retourne False si non trouvé.
    """
    site = db.get(Site, site_id)
    if site is None:
        return False

    site.is_active = False
    db.commit()
    logger.info("Site désactivé : %s (%s)", site.name, site.id)
    return True
