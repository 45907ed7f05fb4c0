"""
Router pour les stations (postes d'appâtage).
Création par les agents sur le terrain ; changement de statut réservé aux superviseurs.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import NotFoundError
from app.schemas.station import (
    NearbyStationResponse,
    StationCreate,
    StationResponse,
    StationStatusUpdate,
    StationUpdate,
)
from app.security import require_capability
from app.services import station_service
from app.services.permissions import (
    STATIONS_CREATE,
    STATIONS_READ,
    STATIONS_SET_STATUS,
    STATIONS_UPDATE,
    Principal,
)

router = APIRouter(prefix="/api/v1/stations", tags=["Stations"])


@router.get("", response_model=List[StationResponse], summary="Lister les stations")
def list_stations(
    site_id: Optional[uuid.UUID] = Query(None, alias="siteId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(STATIONS_READ)),
):
    return station_service.get_stations(db, principal, site_id)


@router.get("/nearby", response_model=List[NearbyStationResponse], summary="Stations à proximité")
def nearby_stations(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: float = Query(500, gt=0, le=10_000, description="Rayon en mètres"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(STATIONS_READ)),
):
    """Stations non retirées dans le rayon donné, de la plus proche à la plus lointaine."""
    return station_service.find_nearby(db, principal, lat, lng, radius)


@router.get("/{station_id}", response_model=StationResponse, summary="Détail d'une station")
def get_station(
    station_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(STATIONS_READ)),
):
    try:
        return station_service.get_station(db, station_id, principal)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("", response_model=StationResponse, status_code=201, summary="Créer une station")
def create_station(
    data: StationCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(STATIONS_CREATE)),
):
    """
    Crée une station en statut active sur un site actif.
    404 si le site est introuvable, 409 si le site est désactivé ou l'identifiant déjà pris.
    """
    try:
        return station_service.create_station(db, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/{station_id}", response_model=StationResponse, summary="Modifier une station")
def update_station(
    station_id: uuid.UUID,
    data: StationUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(STATIONS_UPDATE)),
):
    try:
        return station_service.update_station(db, station_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/{station_id}/status", response_model=StationResponse, summary="Changer le statut d'une station")
def set_station_status(
    station_id: uuid.UUID,
    data: StationStatusUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(STATIONS_SET_STATUS)),
):
    """
    active / inactive / damaged / removed. Le retrait exige un motif et est définitif.
    Le changement est renvoyé aux agents dans leur prochain delta de synchronisation.
    """
    try:
        return station_service.set_station_status(db, station_id, data)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
