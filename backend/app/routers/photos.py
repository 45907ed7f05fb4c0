"""
Router pour les photos d'intervention.

Flux mobile : POST /api/v1/photos/upload (binaire) → filePath, puis la fiche
Photo référençant ce filePath part dans le batch de synchronisation.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from app.database import get_db
from app.exceptions import NotFoundError
from app.schemas.photo import PhotoOut, PhotoUploadResponse
from app.security import require_capability
from app.services import photo_service
from app.services.permissions import PHOTOS_READ, PHOTOS_UPLOAD, Principal
from app.storage import get_storage
from app.storage.provider import StorageProvider

router = APIRouter(prefix="/api/v1/photos", tags=["Photos"])


@router.get("", response_model=List[PhotoOut], summary="Lister les photos")
def list_photos(
    intervention_id: Optional[uuid.UUID] = Query(None, alias="interventionId"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(PHOTOS_READ)),
):
    return photo_service.get_photos(db, principal, intervention_id)


@router.post("/upload", response_model=PhotoUploadResponse, status_code=201, summary="Envoyer le fichier d'une photo")
def upload_photo(
    file: UploadFile = File(...),
    storage: StorageProvider = Depends(get_storage),
    principal: Principal = Depends(require_capability(PHOTOS_UPLOAD)),
):
    """
    Stocke l'image (jpeg, png, webp, heic) et renvoie son chemin opaque.
    415 si le type n'est pas accepté, 413 si le fichier est trop volumineux.
    """
    try:
        return photo_service.store_upload(storage, principal, file.file, file.filename, file.content_type)
    except ValueError as e:
        msg = str(e)
        if "volumineux" in msg:
            raise HTTPException(status_code=413, detail=msg)
        raise HTTPException(status_code=415, detail=msg)


@router.get("/{photo_id}", response_model=PhotoOut, summary="Détail d'une photo")
def get_photo(
    photo_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(PHOTOS_READ)),
):
    try:
        return photo_service.get_photo(db, photo_id, principal)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
