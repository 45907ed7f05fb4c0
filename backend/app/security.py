"""
Dépendances FastAPI d'authentification et de contrôle des droits.

get_current_principal : décode le JWT Bearer et charge l'utilisateur actif.
require_capability    : refuse l'accès (403) si le rôle n'autorise pas l'action.
"""

import uuid
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.services.auth_service import decode_access_token
from app.services.permissions import Principal, can

http_bearer = HTTPBearer(auto_error=False)


def get_current_principal(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    db: Session = Depends(get_db),
) -> Principal:
    if creds is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentification requise.")
    try:
        payload = decode_access_token(creds.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expiré.")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token invalide.")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token invalide.")

    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Compte inactif ou supprimé.")
    return Principal(id=user.id, role=user.role)


def require_capability(action: str):
    """Fabrique une dépendance qui vérifie can(principal, action) sans ressource."""

    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not can(principal, action):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Accès refusé.")
        return principal

    return _dep
