"""
Tests unitaires de la lecture des interventions et des photos :
filtres, et visibilité limitée aux sites du client.
"""

import uuid

import pytest

from app.exceptions import NotFoundError
from app.services import intervention_service, photo_service, station_service, sync_service
from app.services.permissions import Principal

I1 = uuid.UUID("11111111-1111-4111-8111-111111111111")
P1 = uuid.UUID("aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaa1")


@pytest.fixture
def synced(db, field_data):
    """Une intervention avec sa photo, synchronisées par l'agent."""
    sync_service.synchronize(
        db, field_data.agent, 0,
        [{"id": str(I1), "stationId": str(field_data.station_id), "consumptionLevel": "low"}],
        [{"id": str(P1), "interventionId": str(I1), "filePath": "photos/p1.jpg"}],
    )
    return field_data


def stranger() -> Principal:
    return Principal(id=uuid.uuid4(), role="client")


# ============================================================
# Interventions
# ============================================================

def test_agent_voit_toutes_les_interventions(db, synced):
    results = intervention_service.get_interventions(db, synced.agent)
    assert [i.id for i in results] == [I1]


def test_filtre_par_site(db, synced):
    assert len(intervention_service.get_interventions(db, synced.agent, site_id=synced.site_id)) == 1
    assert intervention_service.get_interventions(db, synced.agent, site_id=uuid.uuid4()) == []


def test_client_voit_les_interventions_de_ses_sites(db, synced):
    results = intervention_service.get_interventions(db, synced.customer)
    assert [i.id for i in results] == [I1]
    assert intervention_service.get_intervention(db, I1, synced.customer).id == I1


def test_autre_client_ne_voit_rien(db, synced):
    other = stranger()

    assert intervention_service.get_interventions(db, other) == []
    with pytest.raises(NotFoundError):
        intervention_service.get_intervention(db, I1, other)


def test_intervention_introuvable(db, synced):
    with pytest.raises(NotFoundError):
        intervention_service.get_intervention(db, uuid.uuid4(), synced.agent)


# ============================================================
# Photos
# ============================================================

def test_photos_par_intervention(db, synced):
    results = photo_service.get_photos(db, synced.agent, I1)
    assert [p.id for p in results] == [P1]


def test_client_voit_les_photos_de_ses_sites(db, synced):
    assert photo_service.get_photo(db, P1, synced.customer).file_path == "photos/p1.jpg"


def test_autre_client_ne_voit_pas_les_photos(db, synced):
    other = stranger()

    assert photo_service.get_photos(db, other) == []
    with pytest.raises(NotFoundError):
        photo_service.get_photo(db, P1, other)


# ============================================================
# Stations
# ============================================================

def test_client_voit_les_stations_de_ses_sites(db, field_data):
    results = station_service.get_stations(db, field_data.customer)
    assert {st.id for st in results} == {field_data.station_id, field_data.far_station_id}


def test_autre_client_ne_voit_pas_les_stations(db, field_data):
    other = stranger()

    assert station_service.get_stations(db, other) == []
    assert station_service.find_nearby(db, other, 50.6292, 3.0573, radius_meters=2000) == []
    with pytest.raises(NotFoundError):
        station_service.get_station(db, field_data.station_id, other)
