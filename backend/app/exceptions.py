"""
Erreurs métier de l'application.

Deux familles :
- erreurs par enregistrement (RecordValidationError, IdentityConflictError) :
  collectées par le service de synchronisation et renvoyées dans la réponse,
  elles n'interrompent jamais le batch ;
- erreurs de niveau batch (AuthorizationError, TransientStoreError) : elles
  interrompent l'appel et sont converties en réponse HTTP par les handlers
  déclarés dans app.main.
"""

from typing import Optional


class DeratisationError(Exception):
    """Base de toutes les erreurs métier."""

    code = "ERROR"

    def __init__(self, message: str, record_id: Optional[str] = None):
        self.message = message
        self.record_id = record_id
        super().__init__(message)


class RecordValidationError(DeratisationError):
    """Enregistrement mal formé ou référence introuvable (ex. photo → intervention inconnue)."""

    code = "VALIDATION_ERROR"


class IdentityConflictError(DeratisationError):
    """Identifiant déjà connu mais renvoyé avec des valeurs différentes. Jamais écrasé."""

    code = "IDENTITY_CONFLICT"


class AuthorizationError(DeratisationError):
    """L'appelant soumet des données au nom d'un autre agent sans en avoir le droit."""

    code = "AUTHORIZATION_ERROR"


class TransientStoreError(DeratisationError):
    """Base de données indisponible : l'appel peut être rejoué tel quel."""

    code = "STORE_UNAVAILABLE"


class NotFoundError(DeratisationError):
    code = "NOT_FOUND"
