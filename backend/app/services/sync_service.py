"""
Service de synchronisation bidirectionnelle mobile ↔ serveur.

Stratégie : append-only + idempotence par id client
- Interventions et photos sont créées une seule fois, hors-ligne, avec un UUID
  généré par le mobile : pas de fusion champ par champ possible ni nécessaire.
- Un id déjà connu avec les mêmes valeurs est un rejeu (réseau coupé après
  commit) : ignoré, renvoyé dans `duplicate`.
- Un id déjà connu avec des valeurs différentes est une violation d'intégrité :
  rejeté (IdentityConflictError), consigné dans sync_conflicts, jamais écrasé.
- Interventions avant photos : une photo peut référencer une intervention
  du même batch.
- Chaque enregistrement est committé seul ; un rejet n'interrompt pas le batch.
- Le watermark renvoyé est pris au début de l'appel, avant toute écriture et
  avant la requête de delta : un enregistrement modifié pendant l'appel sera
  renvoyé au prochain tour plutôt que perdu.
- updated_at d'un enregistrement inséré = heure de son insertion (et non du
  début de l'appel) : un batch long ne peut pas écrire sous le watermark
  qu'un autre agent a déjà reçu.
- Le delta ne contient que ce qui a changé après lastSyncTimestamp, plus les
  enregistrements insérés par cet appel ; un rejeu est seulement signalé
  dans `duplicate`.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Set

from pydantic import ValidationError
from sqlalchemy import select

from app.config import settings
from app.exceptions import (
    AuthorizationError,
    DeratisationError,
    IdentityConflictError,
    RecordValidationError,
)
from app.models.intervention import Intervention
from app.models.photo import Photo
from app.models.site import Site
from app.models.station import Station
from app.models.sync_conflict import SyncConflict
from app.models.user import User
from app.schemas.intervention import InterventionIn
from app.schemas.photo import PhotoIn
from app.schemas.sync import SyncConflictResponse, SyncRecordError, SyncResponse
from app.services.entity_store import EntityStore
from app.services.intervention_service import intervention_to_out
from app.services.permissions import SYNC_SUBMIT, Principal, can
from app.services.photo_service import photo_to_out
from app.services.site_service import site_to_response
from app.services.station_service import station_to_response
from app.timeutils import as_utc, from_epoch_ms, to_epoch_ms, utcnow

logger = logging.getLogger(__name__)


@dataclass
class _BatchReport:
    accepted: List[str] = field(default_factory=list)
    duplicate: List[str] = field(default_factory=list)
    errors: List[SyncRecordError] = field(default_factory=list)
    inserted: Dict[str, Set[uuid.UUID]] = field(default_factory=lambda: {"intervention": set(), "photo": set()})
    rejected: Dict[str, Set[str]] = field(default_factory=lambda: {"intervention": set(), "photo": set()})

    def accept(self, entity: str, record_id: uuid.UUID) -> None:
        self.accepted.append(str(record_id))
        self.inserted[entity].add(record_id)

    def replay(self, entity: str, record_id: uuid.UUID) -> None:
        self.duplicate.append(str(record_id))

    def reject(self, entity: str, record_id: Optional[Any], exc: DeratisationError) -> None:
        rid = str(record_id) if record_id is not None else None
        if rid is not None:
            self.rejected[entity].add(rid)
        self.errors.append(SyncRecordError(id=rid, entity=entity, code=exc.code, message=exc.message))
        logger.warning("Sync : %s %s rejeté(e) : %s", entity, rid or "sans id", exc.message)


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return to_epoch_ms(value)
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    return value


def _snapshot(values: Dict[str, Any]) -> Dict[str, Any]:
    return {k: _jsonable(v) for k, v in values.items()}


def _diverging_fields(stored, values: Dict[str, Any]) -> List[str]:
    # isSynchronized, createdAt et updatedAt appartiennent au serveur : jamais dans `values`
    return [f for f, v in values.items() if _comparable(getattr(stored, f)) != _comparable(v)]


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", ""))
    return "Enregistrement invalide : " + "; ".join(parts)


def _raw_id(raw: Any) -> Optional[Any]:
    return raw.get("id") if isinstance(raw, dict) else None


class Reconciler:
    """Un appel de synchronisation : fusion du batch puis calcul du delta."""

    def __init__(self, store: EntityStore, principal: Principal):
        self.store = store
        self.principal = principal
        self.reconciled_at = utcnow()
        self.report = _BatchReport()

    # --- Contrôles -------------------------------------------------------

    def authorize(self, interventions: List[InterventionIn]) -> None:
        """Niveau batch : tout le batch est refusé si un seul enregistrement usurpe un autre agent."""
        if not can(self.principal, SYNC_SUBMIT):
            raise AuthorizationError(f"Le rôle {self.principal.role} ne peut pas synchroniser.")
        for item in interventions:
            agent_id = item.agent_id or self.principal.id
            if not can(self.principal, SYNC_SUBMIT, agent_id):
                raise AuthorizationError(
                    f"Intervention {item.id} soumise au nom de l'agent {agent_id}.",
                    record_id=str(item.id),
                )

    def _check_local_clock(self, local_created_at: Optional[datetime]) -> None:
        if local_created_at is None:
            return
        limit = self.reconciled_at + timedelta(seconds=settings.SYNC_CLOCK_SKEW_TOLERANCE_SECONDS)
        if local_created_at > limit:
            raise RecordValidationError(
                f"localCreatedAt ({local_created_at.isoformat()}) est dans le futur par rapport au serveur."
            )

    def _check_replay(self, entity: str, stored, values: Dict[str, Any]) -> None:
        """Rejeu identique → rien à faire ; valeurs divergentes → conflit consigné puis levé."""
        diverging = _diverging_fields(stored, values)
        if not diverging:
            return

        submitted = _snapshot(values)
        stored_values = _snapshot({f: getattr(stored, f) for f in values})
        self._record_conflict(entity, stored.id, submitted, stored_values)
        raise IdentityConflictError(
            f"{entity.capitalize()} {stored.id} déjà synchronisée avec des valeurs différentes "
            f"({', '.join(diverging)}).",
            record_id=str(stored.id),
        )

    def _record_conflict(self, entity: str, record_id: uuid.UUID, submitted: dict, stored: dict) -> None:
        # Un client qui rejoue le même batch ne doit pas multiplier les conflits à revoir
        open_conflicts = self.store.find_open_conflicts(record_id)
        if any(c.submitted_payload == submitted for c in open_conflicts):
            return

        self.store.add(SyncConflict(
            entity_kind=entity,
            record_id=record_id,
            agent_id=self.principal.id,
            submitted_payload=submitted,
            stored_payload=stored,
            detected_at=self.reconciled_at,
        ))

    # --- Upserts ---------------------------------------------------------

    def _insert(self, entity: str, model, item_id: uuid.UUID, values: Dict[str, Any]) -> None:
        # Heure d'insertion : jamais sous le watermark déjà remis à un appel concurrent
        now = utcnow()
        local = values.get("local_created_at")
        created_at = max(now, local) if local else now
        record = model(id=item_id, **values, is_synchronized=True, created_at=created_at, updated_at=now)

        if self.store.insert(record) is not None:
            self.report.accept(entity, item_id)
            return

        # Insertion refusée : un appel concurrent a pu écrire le même id entre-temps
        stored = self.store.get(model, item_id)
        if stored is None:
            raise RecordValidationError(f"{entity.capitalize()} {item_id} refusée par la base.")
        self._check_replay(entity, stored, values)
        self.report.replay(entity, item_id)

    def upsert_intervention(self, item: InterventionIn) -> None:
        values = {
            "consumption_level": item.consumption_level,
            "notes": item.notes,
            "incident_type": item.incident_type,
            "incident_description": item.incident_description,
            "bait_replaced": item.bait_replaced,
            "station_cleaned": item.station_cleaned,
            "agent_id": item.agent_id or self.principal.id,
            "station_id": item.station_id,
            "local_created_at": as_utc(item.local_created_at),
        }

        stored = self.store.get(Intervention, item.id)
        if stored is not None:
            self._check_replay("intervention", stored, values)
            self.report.replay("intervention", item.id)
            logger.debug("Intervention déjà synchronisée, ignorée : %s", item.id)
            return

        if self.store.get(Station, item.station_id) is None:
            raise RecordValidationError(f"Station {item.station_id} introuvable.")
        if self.store.get(User, values["agent_id"]) is None:
            raise RecordValidationError(f"Agent {values['agent_id']} introuvable.")
        self._check_local_clock(values["local_created_at"])

        self._insert("intervention", Intervention, item.id, values)

    def upsert_photo(self, item: PhotoIn) -> None:
        values = {
            "file_path": item.file_path,
            "thumbnail_path": item.thumbnail_path,
            "type": item.type,
            "description": item.description,
            "intervention_id": item.intervention_id,
            "local_created_at": as_utc(item.local_created_at),
        }

        stored = self.store.get(Photo, item.id)
        if stored is not None:
            self._check_replay("photo", stored, values)
            self.report.replay("photo", item.id)
            logger.debug("Photo déjà synchronisée, ignorée : %s", item.id)
            return

        parent = self.store.get(Intervention, item.intervention_id)
        if parent is None:
            if str(item.intervention_id) in self.report.rejected["intervention"]:
                raise RecordValidationError(
                    f"L'intervention {item.intervention_id} a été rejetée dans ce batch."
                )
            raise RecordValidationError(f"Intervention {item.intervention_id} introuvable.")
        if not can(self.principal, SYNC_SUBMIT, parent.agent_id):
            raise RecordValidationError(
                f"L'intervention {item.intervention_id} appartient à un autre agent."
            )
        self._check_local_clock(values["local_created_at"])

        self._insert("photo", Photo, item.id, values)

    # --- Delta -----------------------------------------------------------

    def _changed_with_inserted(self, model, since: datetime, inserted: Set[uuid.UUID]) -> list:
        changed = self.store.find_changed_since(model, since)
        missing = inserted - {r.id for r in changed}
        return changed + self.store.get_many(model, missing)

    def build_response(self, last_sync_timestamp: int) -> SyncResponse:
        since = from_epoch_ms(last_sync_timestamp)
        sites = self.store.find_changed_since(Site, since)
        stations = self.store.find_changed_since(Station, since)
        interventions = self._changed_with_inserted(Intervention, since, self.report.inserted["intervention"])
        photos = self._changed_with_inserted(Photo, since, self.report.inserted["photo"])

        return SyncResponse(
            sites=[site_to_response(s) for s in sites],
            stations=[station_to_response(st) for st in stations],
            interventions=[intervention_to_out(i) for i in interventions],
            photos=[photo_to_out(p) for p in photos],
            timestamp=to_epoch_ms(self.reconciled_at),
            accepted=self.report.accepted,
            duplicate=self.report.duplicate,
            errors=self.report.errors,
        )


def _parse(entity: str, schema, raws: List[Any], report: _BatchReport) -> list:
    parsed = []
    for raw in raws:
        try:
            parsed.append(schema.model_validate(raw))
        except ValidationError as exc:
            report.reject(entity, _raw_id(raw), RecordValidationError(_format_validation_error(exc)))
    return parsed


def synchronize(
    db,
    principal: Principal,
    last_sync_timestamp: int,
    interventions: List[Dict[str, Any]],
    photos: List[Dict[str, Any]],
) -> SyncResponse:
    """
    Fusionne le batch hors-ligne d'un agent et renvoie le delta depuis last_sync_timestamp.

    Étapes :
    1. Watermark = heure serveur au début de l'appel
    2. Validation de forme de chaque enregistrement (rejet individuel)
    3. Contrôle des droits sur tout le batch (AuthorizationError → rien n'est écrit)
    4. Upsert des interventions, puis des photos, chacune committée seule
    5. Delta : sites, stations, interventions, photos modifiés après last_sync_timestamp,
       plus les enregistrements insérés par cet appel

    Lève AuthorizationError ou TransientStoreError ; toutes les autres erreurs
    sont rapportées par enregistrement dans la réponse.
    """
    reconciler = Reconciler(EntityStore(db), principal)
    report = reconciler.report

    parsed_interventions = _parse("intervention", InterventionIn, interventions, report)
    parsed_photos = _parse("photo", PhotoIn, photos, report)

    reconciler.authorize(parsed_interventions)

    for item in parsed_interventions:
        try:
            reconciler.upsert_intervention(item)
        except (RecordValidationError, IdentityConflictError) as exc:
            report.reject("intervention", item.id, exc)

    for item in parsed_photos:
        try:
            reconciler.upsert_photo(item)
        except (RecordValidationError, IdentityConflictError) as exc:
            report.reject("photo", item.id, exc)

    response = reconciler.build_response(last_sync_timestamp)

    logger.info(
        "Sync agent=%s : %d interventions + %d photos reçues, %d insérées, %d doublons, %d rejetées",
        principal.id, len(interventions), len(photos),
        len(report.accepted), len(report.duplicate), len(report.errors),
    )
    return response


def get_open_conflicts(db) -> List[SyncConflictResponse]:
    """Conflits d'identité en attente de revue, du plus ancien au plus récent."""
    conflicts = db.execute(
        select(SyncConflict)
        .where(SyncConflict.resolved.is_(False))
        .order_by(SyncConflict.detected_at)
    ).scalars().all()
    return [SyncConflictResponse.model_validate(c) for c in conflicts]


def resolve_conflict(db, conflict_id: uuid.UUID, principal: Principal) -> SyncConflictResponse:
    """
    Marque un conflit comme traité. L'enregistrement stocké n'est pas modifié.
    Lève ValueError si le conflit est introuvable ou déjà résolu.
    """
    conflict = db.get(SyncConflict, conflict_id)
    if conflict is None:
        raise ValueError(f"Conflit {conflict_id} introuvable.")
    if conflict.resolved:
        raise ValueError("Le conflit est déjà résolu.")

    conflict.resolved = True
    conflict.resolved_at = utcnow()
    conflict.resolved_by = principal.id
    db.commit()
    db.refresh(conflict)

    logger.info("Conflit %s (%s %s) résolu par %s", conflict.id, conflict.entity_kind, conflict.record_id, principal.id)
    return SyncConflictResponse.model_validate(conflict)
