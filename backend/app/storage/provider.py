"""
Interface du blob store des photos.
Les clés (filePath / thumbnailPath) sont opaques pour le reste de l'application.
"""

from typing import BinaryIO


class StorageProvider:
    def save(self, stream: BinaryIO, key: str) -> int:
        """Écrit le contenu sous la clé donnée et renvoie le nombre d'octets écrits."""
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError
