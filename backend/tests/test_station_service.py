"""
Tests unitaires du service stations : création, statut, recherche de proximité.
"""

import uuid
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from app.exceptions import NotFoundError
from app.models.site import Site
from app.models.station import Station
from app.schemas.common import Coordinates
from app.schemas.station import StationCreate, StationStatusUpdate, StationUpdate
from app.services import station_service
from app.timeutils import as_utc


def make_create(site_id, identifier="p-010", lat=50.63, lng=3.06) -> StationCreate:
    return StationCreate(
        identifier=identifier,
        location=Coordinates(latitude=lat, longitude=lng),
        site_id=site_id,
    )


# ============================================================
# haversine_meters
# ============================================================

def test_haversine_meme_point():
    assert station_service.haversine_meters(50.0, 3.0, 50.0, 3.0) == 0


def test_haversine_un_degre_de_latitude():
    distance = station_service.haversine_meters(50.0, 3.0, 51.0, 3.0)
    assert distance == pytest.approx(111_195, rel=1e-3)


# ============================================================
# create_station
# ============================================================

def test_create_station_succes(db, field_data):
    result = station_service.create_station(db, make_create(field_data.site_id))

    assert result.identifier == "P-010"
    assert result.status == "active"
    assert result.location.latitude == 50.63
    assert result.site_id == field_data.site_id


def test_create_station_site_introuvable():
    db = MagicMock()
    db.get.return_value = None

    with pytest.raises(NotFoundError):
        station_service.create_station(db, make_create(uuid.uuid4()))
    db.add.assert_not_called()


def test_create_station_site_desactive(db, field_data):
    db.get(Site, field_data.site_id).is_active = False
    db.commit()

    with pytest.raises(ValueError, match="désactivé"):
        station_service.create_station(db, make_create(field_data.site_id))


def test_create_station_identifiant_deja_pris(db, field_data):
    with pytest.raises(ValueError, match="déjà utilisé"):
        station_service.create_station(db, make_create(field_data.site_id, identifier="p-001"))


def test_identifiant_vide_refuse():
    with pytest.raises(ValidationError):
        make_create(uuid.uuid4(), identifier="   ")


# ============================================================
# update_station
# ============================================================

def test_update_station_deplace_la_station(db, field_data):
    data = StationUpdate(location=Coordinates(latitude=50.7, longitude=3.1), description="Près du quai 4")
    result = station_service.update_station(db, field_data.station_id, data)

    assert result.location.latitude == 50.7
    assert result.description == "Près du quai 4"
    assert result.identifier == "P-001"


def test_update_station_identifiant_en_double(db, field_data):
    with pytest.raises(ValueError):
        station_service.update_station(db, field_data.station_id, StationUpdate(identifier="P-002"))


def test_update_station_avance_updated_at(db, field_data):
    result = station_service.update_station(db, field_data.station_id, StationUpdate(description="x"))
    assert result.updated_at > as_utc(field_data.seeded_at)


# ============================================================
# set_station_status
# ============================================================

def test_statut_endommage(db, field_data):
    result = station_service.set_station_status(
        db, field_data.station_id, StationStatusUpdate(status="damaged")
    )
    assert result.status == "damaged"
    assert result.removal_reason is None


def test_retrait_avec_motif(db, field_data):
    result = station_service.set_station_status(
        db, field_data.station_id, StationStatusUpdate(status="removed", removal_reason="  Bâtiment démoli ")
    )
    assert result.status == "removed"
    assert result.removal_reason == "Bâtiment démoli"


def test_retrait_sans_motif_refuse():
    with pytest.raises(ValidationError):
        StationStatusUpdate(status="removed")


def test_statut_inconnu_refuse():
    with pytest.raises(ValidationError):
        StationStatusUpdate(status="lost")


def test_station_retiree_est_definitive(db, field_data):
    station_service.set_station_status(
        db, field_data.station_id, StationStatusUpdate(status="removed", removal_reason="Démolie")
    )
    with pytest.raises(ValueError, match="retirée"):
        station_service.set_station_status(db, field_data.station_id, StationStatusUpdate(status="active"))


def test_statut_station_introuvable(db, field_data):
    with pytest.raises(NotFoundError):
        station_service.set_station_status(db, uuid.uuid4(), StationStatusUpdate(status="inactive"))


def test_changement_de_statut_visible_dans_le_delta(db, field_data):
    """updated_at avance : le changement repart vers les agents au prochain delta."""
    before = db.get(Station, field_data.station_id).updated_at
    station_service.set_station_status(db, field_data.station_id, StationStatusUpdate(status="inactive"))
    after = db.get(Station, field_data.station_id).updated_at

    assert as_utc(after) - as_utc(before) > timedelta(0)


# ============================================================
# find_nearby
# ============================================================

def test_nearby_trie_par_distance(db, field_data):
    results = station_service.find_nearby(db, field_data.agent, 50.6292, 3.0573, radius_meters=2000)

    assert [r.id for r in results] == [field_data.station_id, field_data.far_station_id]
    assert results[0].distance_meters < results[1].distance_meters


def test_nearby_respecte_le_rayon(db, field_data):
    results = station_service.find_nearby(db, field_data.agent, 50.6292, 3.0573, radius_meters=100)

    assert [r.id for r in results] == [field_data.station_id]
    assert results[0].distance_meters <= 100


def test_nearby_ignore_les_stations_retirees(db, field_data):
    station_service.set_station_status(
        db, field_data.station_id, StationStatusUpdate(status="removed", removal_reason="Démolie")
    )
    results = station_service.find_nearby(db, field_data.agent, 50.6292, 3.0573, radius_meters=100)

    assert results == []


def test_nearby_ignore_les_sites_desactives(db, field_data):
    db.get(Site, field_data.site_id).is_active = False
    db.commit()

    assert station_service.find_nearby(db, field_data.agent, 50.6292, 3.0573, radius_meters=2000) == []
