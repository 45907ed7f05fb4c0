"""
Contrôle des droits : une seule fonction can(principal, action, resource).

Chaque rôle reçoit un ensemble d'actions ; certaines actions ont en plus une
règle sur la ressource visée (ex. un agent ne synchronise que ses propres
interventions, un client ne voit que ses sites, leurs stations,
interventions et photos).
"""

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple

SYNC_SUBMIT = "sync.submit"
SYNC_REVIEW_CONFLICTS = "sync.review_conflicts"
SITES_READ = "sites.read"
SITES_WRITE = "sites.write"
STATIONS_READ = "stations.read"
STATIONS_CREATE = "stations.create"
STATIONS_UPDATE = "stations.update"
STATIONS_SET_STATUS = "stations.set_status"
INTERVENTIONS_READ = "interventions.read"
PHOTOS_READ = "photos.read"
PHOTOS_UPLOAD = "photos.upload"
USERS_READ = "users.read"
USERS_WRITE = "users.write"

_FIELD_READ = {SITES_READ, STATIONS_READ, INTERVENTIONS_READ, PHOTOS_READ}

ROLE_CAPABILITIES = {
    "agent": _FIELD_READ | {SYNC_SUBMIT, STATIONS_CREATE, PHOTOS_UPLOAD},
    "supervisor": _FIELD_READ | {
        SYNC_SUBMIT, SYNC_REVIEW_CONFLICTS, SITES_WRITE,
        STATIONS_CREATE, STATIONS_UPDATE, STATIONS_SET_STATUS,
        PHOTOS_UPLOAD, USERS_READ,
    },
    "client": {SITES_READ, STATIONS_READ, INTERVENTIONS_READ, PHOTOS_READ},
    "admin": _FIELD_READ | {
        SYNC_SUBMIT, SYNC_REVIEW_CONFLICTS, SITES_WRITE,
        STATIONS_CREATE, STATIONS_UPDATE, STATIONS_SET_STATUS,
        PHOTOS_UPLOAD, USERS_READ, USERS_WRITE,
    },
}


@dataclass(frozen=True)
class Principal:
    """Appelant authentifié : identité stable + rôle."""
    id: uuid.UUID
    role: str


def _own_records_only(principal: Principal, agent_id: Any) -> bool:
    return str(agent_id) == str(principal.id)


def _own_sites_only(principal: Principal, site: Any) -> bool:
    return str(getattr(site, "client_id", None)) == str(principal.id)


def _own_stations_only(principal: Principal, station: Any) -> bool:
    return _own_sites_only(principal, station.site)


def _own_interventions_only(principal: Principal, intervention: Any) -> bool:
    return _own_stations_only(principal, intervention.station)


def _own_photos_only(principal: Principal, photo: Any) -> bool:
    return _own_interventions_only(principal, photo.intervention)


# Restrictions supplémentaires, appliquées seulement quand la ressource est fournie
RESOURCE_RULES: Dict[Tuple[str, str], Callable[[Principal, Any], bool]] = {
    ("agent", SYNC_SUBMIT): _own_records_only,
    ("client", SITES_READ): _own_sites_only,
    ("client", STATIONS_READ): _own_stations_only,
    ("client", INTERVENTIONS_READ): _own_interventions_only,
    ("client", PHOTOS_READ): _own_photos_only,
}


def can(principal: Principal, action: str, resource: Optional[Any] = None) -> bool:
    """Vrai si le principal peut effectuer `action` (sur `resource` si fournie)."""
    if action not in ROLE_CAPABILITIES.get(principal.role, set()):
        return False
    rule = RESOURCE_RULES.get((principal.role, action))
    if rule is None or resource is None:
        return True
    return rule(principal, resource)
