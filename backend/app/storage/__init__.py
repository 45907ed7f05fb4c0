from app.config import settings
from app.storage.local_provider import LocalStorageProvider
from app.storage.provider import StorageProvider

_provider = None


def get_storage() -> StorageProvider:
    """Dépendance FastAPI : blob store des photos (instancié au premier appel)."""
    global _provider
    if _provider is None:
        _provider = LocalStorageProvider(settings.STORAGE_DIR)
    return _provider
