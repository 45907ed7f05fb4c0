"""
Conflits d'identité détectés pendant la synchronisation.

Un même id renvoyé avec des valeurs différentes n'est jamais fusionné :
l'enregistrement stocké reste intact et la version soumise est conservée ici
pour revue manuelle par un superviseur.
"""

import uuid
from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Uuid

from app.database import Base
from app.timeutils import utcnow


class SyncConflict(Base):
    __tablename__ = "sync_conflicts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    entity_kind = Column(String(20), nullable=False)  # intervention, photo
    record_id = Column(Uuid, nullable=False, index=True)
    agent_id = Column(Uuid, ForeignKey("users.id"), nullable=True)  # Auteur de la soumission

    submitted_payload = Column(JSON, nullable=False)
    stored_payload = Column(JSON, nullable=False)

    detected_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    resolved = Column(Boolean, nullable=False, default=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(Uuid, ForeignKey("users.id"), nullable=True)
