"""
Configuration partagée pour tous les tests.

- client      : API avec la BDD mockée et un agent authentifié (aucune connexion réelle)
- anon_client : API avec la BDD mockée, sans authentification
- db          : vraie session SQLAlchemy sur SQLite en mémoire (tests du service de sync)
- field_data  : jeu de données terrain minimal (agents, superviseur, site, stations)
"""

import os
import tempfile
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock

# Avant tout import de l'app : pas de PostgreSQL, stockage dans un dossier temporaire
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_DIR"] = tempfile.mkdtemp(prefix="deratisation_test_")
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SECRET_KEY"] = "cle-de-test-uniquement-pour-pytest-0123456789"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.site import Site
from app.models.station import Station
from app.models.user import User
from app.security import get_current_principal
from app.services.permissions import Principal

AGENT_ID = uuid.UUID("00000000-0000-4000-8000-00000000a001")


def principal_for(role: str, user_id: uuid.UUID = AGENT_ID) -> Principal:
    return Principal(id=user_id, role=role)


@pytest.fixture
def mock_db():
    return MagicMock()


@pytest.fixture
def client(mock_db):
    """Client HTTP de test avec la BDD mockée, authentifié comme agent."""
    app.dependency_overrides[get_db] = lambda: mock_db
    app.dependency_overrides[get_current_principal] = lambda: principal_for("agent")
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    """Change le rôle de l'utilisateur authentifié pour le test en cours."""

    def _login_as(role: str, user_id: uuid.UUID = AGENT_ID) -> None:
        app.dependency_overrides[get_current_principal] = lambda: principal_for(role, user_id)

    return _login_as


@pytest.fixture
def anon_client(mock_db):
    """Client HTTP de test sans surcharge de l'authentification."""
    app.dependency_overrides[get_db] = lambda: mock_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    """Session sur une base SQLite en mémoire partagée par tous les threads du test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def _user(role: str, email: str, user_id=None) -> User:
    return User(
        id=user_id or uuid.uuid4(),
        first_name="Test",
        last_name=role.capitalize(),
        email=email,
        password_hash="not-a-real-hash",
        role=role,
        is_active=True,
    )


@pytest.fixture
def field_data(db):
    """
    Deux agents, un superviseur, un client, un site actif avec deux stations.
    Tous les horodatages sont fixés en 2026-01-01 pour contrôler les deltas.
    """
    seeded_at = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)

    agent = _user("agent", "agent@example.com", AGENT_ID)
    other_agent = _user("agent", "other.agent@example.com")
    supervisor = _user("supervisor", "supervisor@example.com")
    customer = _user("client", "client@example.com")
    db.add_all([agent, other_agent, supervisor, customer])
    db.flush()

    site = Site(
        name="Entrepôt Nord",
        address="12 rue des Docks, Lille",
        latitude=50.6292,
        longitude=3.0573,
        is_active=True,
        client_id=customer.id,
        created_at=seeded_at,
        updated_at=seeded_at,
    )
    db.add(site)
    db.flush()

    station = Station(
        identifier="P-001", latitude=50.6293, longitude=3.0574, status="active",
        site_id=site.id, created_at=seeded_at, updated_at=seeded_at,
    )
    far_station = Station(
        identifier="P-002", latitude=50.6400, longitude=3.0700, status="active",
        site_id=site.id, created_at=seeded_at, updated_at=seeded_at,
    )
    db.add_all([station, far_station])
    db.commit()

    return SimpleNamespace(
        agent=principal_for("agent", agent.id),
        other_agent=principal_for("agent", other_agent.id),
        supervisor=principal_for("supervisor", supervisor.id),
        customer=principal_for("client", customer.id),
        site_id=site.id,
        station_id=station.id,
        far_station_id=far_station.id,
        seeded_at=seeded_at,
    )
