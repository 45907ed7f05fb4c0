"""
Briques communes aux schémas exposés à l'app mobile.

Les noms de champs sur le réseau suivent les types TypeScript partagés
(camelCase : stationId, localCreatedAt, ...). Côté Python on garde le
snake_case ; l'alias camelCase est généré automatiquement.
"""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.timeutils import as_utc

# SQLite renvoie des datetimes naïfs : on les normalise en UTC explicite
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class Coordinates(CamelModel):
    """Point GPS WGS84 (ICoordinates)."""
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
