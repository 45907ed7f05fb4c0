"""
Router pour les comptes utilisateurs (administration).
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.user import UserCreate, UserResponse
from app.security import require_capability
from app.services import user_service
from app.services.permissions import USERS_READ, USERS_WRITE, Principal

router = APIRouter(prefix="/api/v1/users", tags=["Utilisateurs"])


@router.get("", response_model=List[UserResponse], summary="Lister les utilisateurs")
def list_users(
    role: Optional[str] = None,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(USERS_READ)),
):
    """Retourne les comptes triés par nom, filtrables par rôle (agent, supervisor, ...)."""
    return user_service.get_users(db, role)


@router.post("", response_model=UserResponse, status_code=201, summary="Créer un utilisateur")
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(USERS_WRITE)),
):
    try:
        return user_service.create_user(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/{user_id}", response_model=UserResponse, summary="Détail d'un utilisateur")
def get_user(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_capability(USERS_READ)),
):
    user = user_service.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="Utilisateur introuvable.")
    return user
