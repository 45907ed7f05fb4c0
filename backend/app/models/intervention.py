"""
Modèle SQLAlchemy pour les interventions terrain (offline-first).

Architecture offline-first :
- id               : UUID généré côté mobile, jamais réattribué par le serveur
- local_created_at : horodatage du téléphone au moment de la saisie
- created_at       : horodatage serveur à la réception (toujours >= local_created_at)
Les interventions sont append-only : créées une seule fois, jamais modifiées hors-ligne.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.database import Base
from app.timeutils import utcnow


class Intervention(Base):
    __tablename__ = "interventions"

    id = Column(Uuid, primary_key=True)  # Fourni par le client, pas de valeur par défaut

    consumption_level = Column(String(10), nullable=False, default="none")  # none, low, medium, high
    notes = Column(Text, nullable=True)
    incident_type = Column(String(30), nullable=False, default="none")
    incident_description = Column(Text, nullable=True)
    bait_replaced = Column(Boolean, nullable=False, default=False)
    station_cleaned = Column(Boolean, nullable=False, default=False)

    agent_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    station_id = Column(Uuid, ForeignKey("stations.id"), nullable=False, index=True)

    is_synchronized = Column(Boolean, nullable=False, default=True)
    local_created_at = Column(DateTime(timezone=True), nullable=True)  # Timestamp client (offline)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, index=True)

    station = relationship("Station")
    photos = relationship("Photo", back_populates="intervention")
