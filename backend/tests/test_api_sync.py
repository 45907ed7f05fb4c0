"""
Tests d'intégration API pour la synchronisation offline ↔ online.
Endpoints : POST /api/sync, GET /api/sync/conflicts, POST /api/sync/conflicts/{id}/resolve
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from app.exceptions import AuthorizationError, TransientStoreError
from app.schemas.sync import SyncConflictResponse, SyncRecordError, SyncResponse
from app.services.auth_service import create_access_token


# --- Helpers ---

def make_intervention_payload(**kwargs) -> dict:
    return {
        "id": kwargs.get("id", str(uuid.uuid4())),
        "stationId": kwargs.get("stationId", str(uuid.uuid4())),
        "consumptionLevel": kwargs.get("consumptionLevel", "high"),
        "baitReplaced": True,
        "stationCleaned": False,
        "localCreatedAt": "2026-03-02T09:15:00Z",
    }


def make_sync_response(**kwargs) -> SyncResponse:
    return SyncResponse(
        timestamp=kwargs.get("timestamp", 1772443000000),
        accepted=kwargs.get("accepted", []),
        duplicate=kwargs.get("duplicate", []),
        errors=kwargs.get("errors", []),
    )


def make_conflict(**kwargs) -> SyncConflictResponse:
    return SyncConflictResponse(
        id=kwargs.get("id", uuid.uuid4()),
        entity_kind="intervention",
        record_id=uuid.uuid4(),
        agent_id=uuid.uuid4(),
        submitted_payload={"consumption_level": "low"},
        stored_payload={"consumption_level": "high"},
        detected_at=datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc),
        resolved=kwargs.get("resolved", False),
    )


# ============================================================
# POST /api/sync
# ============================================================

def test_sync_succes(client):
    """Batch valide → 200, réponse en camelCase avec le nouveau watermark."""
    payload = make_intervention_payload()

    with patch("app.routers.sync.sync_service.synchronize") as mock:
        mock.return_value = make_sync_response(accepted=[payload["id"]])
        response = client.post("/api/sync", json={
            "lastSyncTimestamp": 1000,
            "interventions": [payload],
            "photos": [],
        })

    assert response.status_code == 200
    data = response.json()
    assert data["timestamp"] == 1772443000000
    assert data["accepted"] == [payload["id"]]
    assert data["sites"] == []
    assert data["errors"] == []


def test_sync_transmet_le_batch_brut(client):
    """Les enregistrements sont transmis tels quels au service (validation par enregistrement)."""
    payload = make_intervention_payload(consumptionLevel="enormous")

    with patch("app.routers.sync.sync_service.synchronize") as mock:
        mock.return_value = make_sync_response()
        response = client.post("/api/sync", json={"lastSyncTimestamp": 0, "interventions": [payload]})

    assert response.status_code == 200
    _, principal, last_sync, interventions, photos = mock.call_args.args
    assert principal.role == "agent"
    assert last_sync == 0
    assert interventions == [payload]
    assert photos == []


def test_sync_erreurs_par_enregistrement(client):
    """Rejets individuels → 200, chaque erreur porte l'id et le code."""
    rid = str(uuid.uuid4())
    with patch("app.routers.sync.sync_service.synchronize") as mock:
        mock.return_value = make_sync_response(errors=[
            SyncRecordError(id=rid, entity="intervention", code="IDENTITY_CONFLICT", message="valeurs différentes"),
        ])
        response = client.post("/api/sync", json={"lastSyncTimestamp": 1000, "interventions": []})

    assert response.status_code == 200
    assert response.json()["errors"] == [{
        "id": rid, "entity": "intervention", "code": "IDENTITY_CONFLICT", "message": "valeurs différentes",
    }]


def test_sync_sans_watermark(client):
    """lastSyncTimestamp manquant → 422."""
    response = client.post("/api/sync", json={"interventions": []})
    assert response.status_code == 422


def test_sync_watermark_negatif(client):
    """lastSyncTimestamp négatif → 422."""
    response = client.post("/api/sync", json={"lastSyncTimestamp": -1})
    assert response.status_code == 422


def test_sync_batch_trop_grand(client):
    """Plus de SYNC_MAX_BATCH_SIZE enregistrements → 422, le service n'est pas appelé."""
    with patch("app.routers.sync.sync_service.synchronize") as mock:
        response = client.post("/api/sync", json={
            "lastSyncTimestamp": 0,
            "interventions": [make_intervention_payload() for _ in range(501)],
        })

    assert response.status_code == 422
    mock.assert_not_called()


def test_sync_refuse_403(client):
    """Batch au nom d'un autre agent → 403 avec le code d'erreur."""
    with patch("app.routers.sync.sync_service.synchronize") as mock:
        mock.side_effect = AuthorizationError("Intervention soumise au nom d'un autre agent.")
        response = client.post("/api/sync", json={"lastSyncTimestamp": 0})

    assert response.status_code == 403
    assert response.json()["code"] == "AUTHORIZATION_ERROR"


def test_sync_base_indisponible_503(client):
    """Base indisponible → 503 avec Retry-After, le mobile rejoue plus tard."""
    with patch("app.routers.sync.sync_service.synchronize") as mock:
        mock.side_effect = TransientStoreError("Base de données indisponible.")
        response = client.post("/api/sync", json={"lastSyncTimestamp": 0})

    assert response.status_code == 503
    assert response.headers["retry-after"] == "30"
    assert response.json()["code"] == "STORE_UNAVAILABLE"


def test_sync_sans_token(anon_client):
    """Pas de header Authorization → 401."""
    response = anon_client.post("/api/sync", json={"lastSyncTimestamp": 0})
    assert response.status_code == 401


def test_sync_token_invalide(anon_client):
    response = anon_client.post(
        "/api/sync",
        json={"lastSyncTimestamp": 0},
        headers={"Authorization": "Bearer pas-un-jwt"},
    )
    assert response.status_code == 401


def test_sync_avec_token_valide(anon_client, mock_db):
    """Token valide d'un agent actif → le service reçoit son identité."""
    user = MagicMock(id=uuid.uuid4(), role="agent", is_active=True)
    mock_db.get.return_value = user
    token, _ = create_access_token(user)

    with patch("app.routers.sync.sync_service.synchronize") as mock:
        mock.return_value = make_sync_response()
        response = anon_client.post(
            "/api/sync",
            json={"lastSyncTimestamp": 0},
            headers={"Authorization": f"Bearer {token}"},
        )

    assert response.status_code == 200
    assert mock.call_args.args[1].id == user.id


def test_sync_compte_inactif(anon_client, mock_db):
    user = MagicMock(id=uuid.uuid4(), role="agent", is_active=False)
    mock_db.get.return_value = user
    token, _ = create_access_token(user)

    response = anon_client.post(
        "/api/sync",
        json={"lastSyncTimestamp": 0},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401


# ============================================================
# Conflits d'identité
# ============================================================

def test_conflits_refuses_a_un_agent(client):
    response = client.get("/api/sync/conflicts")
    assert response.status_code == 403


def test_conflits_liste_superviseur(client, login_as):
    login_as("supervisor")
    with patch("app.routers.sync.sync_service.get_open_conflicts") as mock:
        mock.return_value = [make_conflict()]
        response = client.get("/api/sync/conflicts")

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["entityKind"] == "intervention"
    assert data[0]["submittedPayload"] == {"consumption_level": "low"}


def test_resoudre_conflit(client, login_as):
    login_as("supervisor")
    conflict_id = uuid.uuid4()
    with patch("app.routers.sync.sync_service.resolve_conflict") as mock:
        mock.return_value = make_conflict(id=conflict_id, resolved=True)
        response = client.post(f"/api/sync/conflicts/{conflict_id}/resolve")

    assert response.status_code == 200
    assert response.json()["resolved"] is True


def test_resoudre_conflit_introuvable(client, login_as):
    login_as("supervisor")
    with patch("app.routers.sync.sync_service.resolve_conflict") as mock:
        mock.side_effect = ValueError("Conflit introuvable.")
        response = client.post(f"/api/sync/conflicts/{uuid.uuid4()}/resolve")

    assert response.status_code == 404


def test_resoudre_conflit_deja_resolu(client, login_as):
    login_as("supervisor")
    with patch("app.routers.sync.sync_service.resolve_conflict") as mock:
        mock.side_effect = ValueError("Le conflit est déjà résolu.")
        response = client.post(f"/api/sync/conflicts/{uuid.uuid4()}/resolve")

    assert response.status_code == 409
