"""
Router d'authentification : connexion et profil courant.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.auth import LoginRequest, LoginResponse
from app.schemas.user import UserResponse
from app.security import get_current_principal
from app.services import auth_service, user_service
from app.services.permissions import Principal

router = APIRouter(prefix="/api/auth", tags=["Authentification"])


@router.post("/login", response_model=LoginResponse, summary="Se connecter")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Renvoie l'utilisateur, un token Bearer et sa date d'expiration (epoch ms)."""
    try:
        return auth_service.login(db, data.email, data.password)
    except auth_service.InvalidCredentials as e:
        raise HTTPException(status_code=401, detail=str(e))


@router.get("/me", response_model=UserResponse, summary="Profil de l'utilisateur connecté")
def me(db: Session = Depends(get_db), principal: Principal = Depends(get_current_principal)):
    user = user_service.get_user(db, principal.id)
    if user is None:
        raise HTTPException(status_code=404, detail="Utilisateur introuvable.")
    return user
