import asyncio
import logging
import os

from app.config import settings

logger = logging.getLogger(__name__)


class LocalPhotoStorage:
    """Stores photo files on local disk under ``<root>/<intervention_id>/``."""

    def __init__(self, root: str):
        self.root = root

    def path_for(self, intervention_id: str, photo_id: str, extension: str = ".jpg") -> str:
        return os.path.join(self.root, intervention_id, f"{photo_id}{extension}")

    @staticmethod
    def _write(file_path: str, content: bytes) -> None:
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "wb") as f:
            f.write(content)

    @staticmethod
    def _remove(file_path: str) -> None:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            logger.warning("Photo file already missing: %s", file_path)

    async def save(self, intervention_id: str, photo_id: str, content: bytes, extension: str = ".jpg") -> str:
        file_path = self.path_for(intervention_id, photo_id, extension)
        await asyncio.to_thread(self._write, file_path, content)
        return file_path

    async def delete(self, file_path: str) -> None:
        await asyncio.to_thread(self._remove, file_path)


def get_storage() -> LocalPhotoStorage:
    return LocalPhotoStorage(os.path.join(settings.data_dir, "photos"))
