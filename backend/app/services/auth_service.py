"""
Service d'authentification : vérification des identifiants et émission des JWT.
"""

import logging
import uuid
from datetime import timedelta

import jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User
from app.schemas.auth import LoginResponse
from app.schemas.user import UserResponse
from app.timeutils import to_epoch_ms, utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class InvalidCredentials(Exception):
    pass


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user: User) -> tuple[str, int]:
    """Renvoie le token et sa date d'expiration (epoch ms)."""
    now = utcnow()
    expires_at = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "jti": str(uuid.uuid4()),
    }
    token = jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, to_epoch_ms(expires_at)


def decode_access_token(token: str) -> dict:
    """Lève jwt.InvalidTokenError (ou ExpiredSignatureError) si le token est refusé."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


def login(db: Session, email: str, password: str) -> LoginResponse:
    """
    Vérifie les identifiants et renvoie l'utilisateur + un token d'accès.

    Lève InvalidCredentials si l'email est inconnu, le mot de passe faux
    ou le compte désactivé (même message dans les trois cas).
    """
    user = db.execute(select(User).where(User.email == email.strip().lower())).scalar()
    if user is None or not user.is_active or not verify_password(password, user.password_hash):
        logger.warning("Échec de connexion pour %s", email)
        raise InvalidCredentials("Email ou mot de passe incorrect.")

    user.last_login_at = utcnow()
    db.commit()
    db.refresh(user)

    token, expires_at = create_access_token(user)
    logger.info("Connexion de %s (%s)", user.email, user.role)
    return LoginResponse(user=UserResponse.model_validate(user), token=token, expires_at=expires_at)
