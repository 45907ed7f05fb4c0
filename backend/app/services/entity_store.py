"""
Accès à la base pour la synchronisation : lecture par id, insertion unitaire
et requête "modifié depuis".

Chaque insertion est committée seule : un enregistrement du batch est une
unité d'isolation, un échec n'annule pas ceux déjà écrits. Une base
indisponible est convertie en TransientStoreError (l'appel peut être rejoué).
"""

import logging
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.database import Base
from app.exceptions import TransientStoreError
from app.models.sync_conflict import SyncConflict

logger = logging.getLogger(__name__)


class EntityStore:

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self):
        try:
            yield
        except (OperationalError, InterfaceError) as exc:
            self._rollback()
            logger.error("Base de données indisponible : %s", exc)
            raise TransientStoreError("Base de données indisponible, réessayer plus tard.") from exc

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as exc:
            logger.warning("Rollback impossible : %s", exc)

    def get(self, model: Type[Base], entity_id: uuid.UUID):
        with self._guard():
            return self.db.get(model, entity_id)

    def get_many(self, model: Type[Base], ids: Iterable[uuid.UUID]) -> list:
        ids = list(ids)
        if not ids:
            return []
        with self._guard():
            return list(self.db.execute(select(model).where(model.id.in_(ids))).scalars().all())

    def insert(self, entity) -> Optional[object]:
        """
        Insère et committe un enregistrement.

        Renvoie None si la base refuse l'insertion (id déjà présent, inséré
        entre-temps par un autre appel, ou clé étrangère invalide) ; l'appelant
        relit alors l'état stocké pour décider.
        """
        with self._guard():
            self.db.add(entity)
            try:
                self.db.commit()
            except IntegrityError as exc:
                self._rollback()
                logger.info("Insertion refusée par la base pour %s : %s", getattr(entity, "id", "?"), exc.orig)
                return None
            self.db.refresh(entity)
            return entity

    def add(self, entity) -> None:
        """Ajoute et committe un enregistrement annexe (ex. conflit à revoir)."""
        with self._guard():
            self.db.add(entity)
            self.db.commit()

    def find_changed_since(self, model: Type[Base], since: datetime) -> List:
        """Tous les enregistrements dont updated_at est strictement postérieur à `since`."""
        with self._guard():
            return list(
                self.db.execute(
                    select(model)
                    .where(model.updated_at > since)
                    .order_by(model.updated_at, model.id)
                ).scalars().all()
            )

    def find_open_conflicts(self, record_id: uuid.UUID) -> List:
        with self._guard():
            return list(
                self.db.execute(
                    select(SyncConflict).where(
                        SyncConflict.record_id == record_id,
                        SyncConflict.resolved.is_(False),
                    )
                ).scalars().all()
            )
