"""
Conversions entre datetimes UTC et timestamps epoch en millisecondes.

Le protocole de synchronisation échange des entiers (epoch ms) ; la base
stocke des DateTime. SQLite renvoie des datetimes naïfs : ils sont toujours
interprétés comme de l'UTC.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Horloge du serveur, tronquée à la milliseconde (précision du protocole)."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_epoch_ms(value: datetime) -> int:
    return (as_utc(value) - EPOCH) // timedelta(milliseconds=1)


def from_epoch_ms(ms: int) -> datetime:
    return EPOCH + timedelta(milliseconds=ms)
