"""
Modèle SQLAlchemy pour les postes d'appâtage (stations) d'un site.

Une station n'est jamais supprimée : elle est retirée via status="removed"
(avec removal_reason), ce qui reste visible dans l'historique et dans le delta
de synchronisation des agents.
"""

import uuid
from sqlalchemy import Column, DateTime, Float, ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.database import Base
from app.timeutils import utcnow


class Station(Base):
    __tablename__ = "stations"
    __table_args__ = (
        UniqueConstraint("site_id", "identifier", name="uq_stations_site_identifier"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    identifier = Column(String(50), nullable=False)  # Ex: "P-012", unique par site
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    description = Column(Text, nullable=True)

    # Position sur le plan du site (pixels)
    plan_position_x = Column(Float, nullable=True)
    plan_position_y = Column(Float, nullable=True)

    status = Column(String(20), nullable=False, default="active")  # active, inactive, removed, damaged
    removal_reason = Column(String(255), nullable=True)

    site_id = Column(Uuid, ForeignKey("sites.id"), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, index=True)

    site = relationship("Site", back_populates="stations")
