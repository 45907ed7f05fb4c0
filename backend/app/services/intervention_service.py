"""
Lecture des interventions.

Les interventions sont créées uniquement par la synchronisation (ids générés
hors-ligne par le mobile, append-only) : ce service n'expose que la lecture.
"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models.intervention import Intervention
from app.models.station import Station
from app.schemas.intervention import InterventionOut
from app.services.permissions import INTERVENTIONS_READ, Principal, can


def intervention_to_out(intervention: Intervention) -> InterventionOut:
    return InterventionOut.model_validate(intervention)


def get_interventions(
    db: Session,
    principal: Principal,
    station_id: Optional[uuid.UUID] = None,
    agent_id: Optional[uuid.UUID] = None,
    site_id: Optional[uuid.UUID] = None,
) -> List[InterventionOut]:
    """
    Interventions filtrées (station, agent, site), de la plus récente à la plus ancienne.
    Un client ne voit que celles des stations de ses sites.
    """
    query = select(Intervention).order_by(Intervention.created_at.desc())
    if station_id is not None:
        query = query.where(Intervention.station_id == station_id)
    if agent_id is not None:
        query = query.where(Intervention.agent_id == agent_id)
    if site_id is not None:
        query = query.join(Station, Station.id == Intervention.station_id).where(Station.site_id == site_id)

    interventions = db.execute(query).scalars().all()
    return [intervention_to_out(i) for i in interventions if can(principal, INTERVENTIONS_READ, i)]


def get_intervention(db: Session, intervention_id: uuid.UUID, principal: Principal) -> InterventionOut:
    intervention = db.get(Intervention, intervention_id)
    if intervention is None or not can(principal, INTERVENTIONS_READ, intervention):
        raise NotFoundError(f"Intervention {intervention_id} introuvable.")
    return intervention_to_out(intervention)
