"""
Service pour les photos d'intervention.

Le binaire est envoyé à part (upload multipart) et stocké dans le blob store ;
la fiche Photo arrive ensuite par la synchronisation avec le chemin renvoyé.
"""

import logging
import uuid
from pathlib import PurePath
from typing import BinaryIO, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import NotFoundError
from app.models.photo import Photo
from app.schemas.photo import PhotoOut, PhotoUploadResponse
from app.services.permissions import PHOTOS_READ, Principal, can
from app.storage.provider import StorageProvider
from app.timeutils import utcnow

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {"image/jpeg": ".jpg", "image/png": ".png", "image/webp": ".webp", "image/heic": ".heic"}


def photo_to_out(photo: Photo) -> PhotoOut:
    return PhotoOut.model_validate(photo)


def get_photos(db: Session, principal: Principal, intervention_id: Optional[uuid.UUID] = None) -> List[PhotoOut]:
    query = select(Photo).order_by(Photo.created_at)
    if intervention_id is not None:
        query = query.where(Photo.intervention_id == intervention_id)
    photos = db.execute(query).scalars().all()
    return [photo_to_out(p) for p in photos if can(principal, PHOTOS_READ, p)]


def get_photo(db: Session, photo_id: uuid.UUID, principal: Principal) -> PhotoOut:
    photo = db.get(Photo, photo_id)
    if photo is None or not can(principal, PHOTOS_READ, photo):
        raise NotFoundError(f"Photo {photo_id} introuvable.")
    return photo_to_out(photo)


def build_storage_key(principal: Principal, filename: Optional[str], content_type: str) -> str:
    """Clé unique : photos/<agent>/<AAAA-MM>/<uuid><ext>."""
    ext = ALLOWED_CONTENT_TYPES.get(content_type) or PurePath(filename or "").suffix.lower() or ".bin"
    return f"photos/{principal.id}/{utcnow():%Y-%m}/{uuid.uuid4().hex}{ext}"


def store_upload(
    storage: StorageProvider,
    principal: Principal,
    stream: BinaryIO,
    filename: Optional[str],
    content_type: Optional[str],
) -> PhotoUploadResponse:
    """
    Stocke le binaire d'une photo et renvoie son chemin opaque.

    Lève ValueError si le type n'est pas une image acceptée ou si le fichier
    dépasse MAX_UPLOAD_SIZE_MB (le fichier partiel est alors supprimé).
    """
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise ValueError(f"Type de fichier non accepté : {content_type}.")

    key = build_storage_key(principal, filename, content_type)
    size = storage.save(stream, key)

    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if size > max_bytes:
        storage.delete(key)
        raise ValueError(f"Fichier trop volumineux : maximum {settings.MAX_UPLOAD_SIZE_MB} Mo.")

    logger.info("Photo reçue de %s : %s (%d octets)", principal.id, key, size)
    return PhotoUploadResponse(file_path=key, size=size, content_type=content_type)
