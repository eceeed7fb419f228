import logging
from pathlib import Path

from starlette.concurrency import run_in_threadpool

from app.core.config import settings

logger = logging.getLogger(__name__)


class LocalCertificateStorage:
    """
    Keeps certificate artifacts under MEDIA_ROOT/certificates and serves
    them from MEDIA_URL. Swappable for an object store exposing the same
    save/delete coroutines.
    """

    folder = "certificates"

    def __init__(self, root: str = None, base_url: str = None):
        self.root = Path(root or settings.MEDIA_ROOT)
        self.base_url = (base_url or settings.MEDIA_URL).rstrip("/")

    def _write(self, public_id: str, content: bytes) -> Path:
        path = self.root / self.folder / f"{public_id}.pdf"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    async def save(self, public_id: str, content: bytes) -> dict:
        await run_in_threadpool(self._write, public_id, content)
        return {
            "url": f"{self.base_url}/{self.folder}/{public_id}.pdf",
            "public_id": public_id,
        }

    async def delete(self, public_id: str):
        path = self.root / self.folder / f"{public_id}.pdf"
        try:
            await run_in_threadpool(path.unlink)
        except FileNotFoundError:
            logger.warning("Certificate artifact %s already removed", public_id)


certificate_storage = LocalCertificateStorage()
