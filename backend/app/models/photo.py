"""
Modèle SQLAlchemy pour les photos rattachées à une intervention.

file_path / thumbnail_path sont des clés opaques du blob store : le serveur
ne lit jamais le contenu des images pendant la synchronisation.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.database import Base
from app.timeutils import utcnow


class Photo(Base):
    __tablename__ = "photos"

    id = Column(Uuid, primary_key=True)  # Fourni par le client

    file_path = Column(String(255), nullable=False)
    thumbnail_path = Column(String(255), nullable=True)
    type = Column(String(20), nullable=False, default="other")  # station, incident, consumption, other
    description = Column(Text, nullable=True)

    intervention_id = Column(Uuid, ForeignKey("interventions.id"), nullable=False, index=True)

    is_synchronized = Column(Boolean, nullable=False, default=True)
    local_created_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, index=True)

    intervention = relationship("Intervention", back_populates="photos")
