"""
Service métier pour les stations (postes d'appâtage).

Les agents créent des stations sur le terrain ; seuls les superviseurs et
administrateurs changent leur statut. Une station n'est jamais supprimée :
status="removed" la retire tout en gardant ses interventions.
"""

import logging
import math
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models.site import Site
from app.models.station import Station
from app.schemas.common import Coordinates
from app.schemas.station import (
    NearbyStationResponse,
    StationCreate,
    StationResponse,
    StationStatusUpdate,
    StationUpdate,
)
from app.services.permissions import STATIONS_READ, Principal, can

logger = logging.getLogger(__name__)

EARTH_RADIUS_METERS = 6_371_000
METERS_PER_DEGREE_LAT = 111_320


def station_to_response(station: Station) -> StationResponse:
    return StationResponse(
        id=station.id,
        identifier=station.identifier,
        location=Coordinates(latitude=station.latitude, longitude=station.longitude),
        description=station.description,
        plan_position_x=station.plan_position_x,
        plan_position_y=station.plan_position_y,
        status=station.status,
        removal_reason=station.removal_reason,
        site_id=station.site_id,
        created_at=station.created_at,
        updated_at=station.updated_at,
    )


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Distance orthodromique entre deux points GPS, en mètres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def _identifier_taken(db: Session, site_id: uuid.UUID, identifier: str, exclude_id: Optional[uuid.UUID] = None) -> bool:
    query = select(Station.id).where(Station.site_id == site_id, Station.identifier == identifier)
    if exclude_id is not None:
        query = query.where(Station.id != exclude_id)
    return db.execute(query).first() is not None


def get_stations(db: Session, principal: Principal, site_id: Optional[uuid.UUID] = None) -> List[StationResponse]:
    """Stations visibles par le principal (un client ne voit que celles de ses sites)."""
    query = select(Station).order_by(Station.site_id, Station.identifier)
    if site_id is not None:
        query = query.where(Station.site_id == site_id)
    stations = db.execute(query).scalars().all()
    return [station_to_response(st) for st in stations if can(principal, STATIONS_READ, st)]


def get_station(db: Session, station_id: uuid.UUID, principal: Principal) -> StationResponse:
    station = db.get(Station, station_id)
    if station is None or not can(principal, STATIONS_READ, station):
        raise NotFoundError(f"Station {station_id} introuvable.")
    return station_to_response(station)


def create_station(db: Session, data: StationCreate) -> StationResponse:
    """
    Crée une station sur un site actif.

    Lève NotFoundError si le site n'existe pas, ValueError si le site est
    désactivé ou si l'identifiant est déjà utilisé sur ce site.
    """
    site = db.get(Site, data.site_id)
    if site is None:
        raise NotFoundError(f"Site {data.site_id} introuvable.")
    if not site.is_active:
        raise ValueError("Impossible d'ajouter une station à un site désactivé.")
    if _identifier_taken(db, site.id, data.identifier):
        raise ValueError(f"L'identifiant {data.identifier} est déjà utilisé sur ce site.")

    station = Station(
        identifier=data.identifier,
        latitude=data.location.latitude,
        longitude=data.location.longitude,
        description=data.description,
        plan_position_x=data.plan_position_x,
        plan_position_y=data.plan_position_y,
        status="active",
        site_id=site.id,
    )
    db.add(station)
    db.commit()
    db.refresh(station)

    logger.info("Station créée : %s sur le site %s", station.identifier, site.id)
    return station_to_response(station)


def update_station(db: Session, station_id: uuid.UUID, data: StationUpdate) -> StationResponse:
    station = db.get(Station, station_id)
    if station is None:
        raise NotFoundError(f"Station {station_id} introuvable.")
    if data.identifier and _identifier_taken(db, station.site_id, data.identifier, exclude_id=station.id):
        raise ValueError(f"L'identifiant {data.identifier} est déjà utilisé sur ce site.")

    update_data = data.model_dump(exclude_unset=True, exclude={"location"})
    for field, value in update_data.items():
        setattr(station, field, value)
    if data.location is not None:
        station.latitude = data.location.latitude
        station.longitude = data.location.longitude

    db.commit()
    db.refresh(station)
    return station_to_response(station)


def set_station_status(db: Session, station_id: uuid.UUID, data: StationStatusUpdate) -> StationResponse:
    """
    Change le statut d'une station (superviseur / admin).

    Le motif de retrait n'est conservé que pour status="removed". Une station
    retirée est définitive : lève ValueError si on tente de la réactiver.
    """
    station = db.get(Station, station_id)
    if station is None:
        raise NotFoundError(f"Station {station_id} introuvable.")
    if station.status == "removed" and data.status != "removed":
        raise ValueError("Une station retirée ne peut plus changer de statut.")

    previous = station.status
    station.status = data.status
    station.removal_reason = data.removal_reason.strip() if data.status == "removed" else None
    db.commit()
    db.refresh(station)

    logger.info("Station %s : %s → %s", station.identifier, previous, station.status)
    return station_to_response(station)


def find_nearby(
    db: Session, principal: Principal, lat: float, lng: float, radius_meters: float = 500
) -> List[NearbyStationResponse]:
    """
    Stations non retirées, sur un site actif, à moins de radius_meters du point.
    Pré-filtre SQL par boîte englobante, puis distance exacte (haversine), tri croissant.
    """
    d_lat = radius_meters / METERS_PER_DEGREE_LAT
    d_lng = radius_meters / (METERS_PER_DEGREE_LAT * max(math.cos(math.radians(lat)), 1e-6))

    candidates = db.execute(
        select(Station)
        .join(Site, Site.id == Station.site_id)
        .where(
            Site.is_active.is_(True),
            Station.status != "removed",
            Station.latitude.between(lat - d_lat, lat + d_lat),
            Station.longitude.between(lng - d_lng, lng + d_lng),
        )
    ).scalars().all()

    results = []
    for station in candidates:
        if not can(principal, STATIONS_READ, station):
            continue
        distance = haversine_meters(lat, lng, station.latitude, station.longitude)
        if distance <= radius_meters:
            results.append(
                NearbyStationResponse(**station_to_response(station).model_dump(), distance_meters=round(distance, 1))
            )
    results.sort(key=lambda r: r.distance_meters)
    return results
