"""
Service métier pour les comptes utilisateurs (agents, superviseurs, clients).
"""

import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.user import User
from app.schemas.user import UserCreate, UserResponse
from app.services.auth_service import hash_password

logger = logging.getLogger(__name__)


def create_user(db: Session, data: UserCreate) -> UserResponse:
    """Crée un compte. Lève ValueError si l'email est déjà utilisé."""
    email = str(data.email).lower()
    existing = db.execute(select(User).where(User.email == email)).scalar()
    if existing:
        raise ValueError(f"Un compte existe déjà pour {email}.")

    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=email,
        password_hash=hash_password(data.password),
        role=data.role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Utilisateur créé : %s (%s)", user.email, user.role)
    return UserResponse.model_validate(user)


def get_users(db: Session, role: Optional[str] = None) -> List[UserResponse]:
    query = select(User).order_by(User.last_name, User.first_name)
    if role:
        query = query.where(User.role == role)
    return [UserResponse.model_validate(u) for u in db.execute(query).scalars().all()]


def get_user(db: Session, user_id: uuid.UUID) -> Optional[UserResponse]:
    user = db.get(User, user_id)
    if user is None:
        return None
    return UserResponse.model_validate(user)
