"""
Modèle SQLAlchemy pour les sites clients (entrepôts, restaurants, etc.).
Un site n'est jamais supprimé physiquement : is_active=False le désactive.
"""

import uuid
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.database import Base
from app.timeutils import utcnow


class Site(Base):
    __tablename__ = "sites"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    address = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    client_reference = Column(String(100), nullable=True)

    # Coordonnées GPS optionnelles (WGS84)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    plan_image_path = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    client_id = Column(Uuid, ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow, index=True)

    stations = relationship("Station", back_populates="site", order_by="Station.identifier")
