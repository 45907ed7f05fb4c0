"""
Blob store sur disque local (développement et petites installations).
"""

import logging
import shutil
from pathlib import Path
from typing import BinaryIO

from app.storage.provider import StorageProvider

logger = logging.getLogger(__name__)


class LocalStorageProvider(StorageProvider):

    def __init__(self, base_dir: str = "var/storage"):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _get_path(self, key: str) -> Path:
        """Chemin disque d'une clé, sans possibilité de sortir de base_dir."""
        clean_key = key.replace("\\", "/").lstrip("/")
        path = (self.base_dir / clean_key).resolve()
        if not path.is_relative_to(self.base_dir.resolve()):
            raise ValueError(f"Clé de stockage invalide : {key}")
        return path

    def save(self, stream: BinaryIO, key: str) -> int:
        path = self._get_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            shutil.copyfileobj(stream, f)
        size = path.stat().st_size
        logger.debug("Fichier stocké : %s (%d octets)", key, size)
        return size

    def exists(self, key: str) -> bool:
        return self._get_path(key).exists()

    def delete(self, key: str) -> None:
        path = self._get_path(key)
        if path.exists():
            path.unlink()
            logger.info("Fichier supprimé : %s", key)
