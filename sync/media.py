"""
Media hydration: uploads the images listed in a sync pack and returns a
mapping of original URL/path -> media id for block hydration.
"""
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import unquote, urlparse

import httpx

from storage.document_store import DocumentStore

from .config import MEDIA_CONNECT_TIMEOUT, MEDIA_DEDUPE_SCAN_LIMIT, MEDIA_DOWNLOAD_TIMEOUT
from .pack import AssetInfo

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "image.jpg"

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}


def filename_from(url_or_path: str) -> str:
    if url_or_path.startswith(("http://", "https://")):
        name = unquote(Path(urlparse(url_or_path).path).name)
    else:
        name = Path(url_or_path).name
    return name or DEFAULT_FILENAME


def alt_text_from(filename: str) -> str:
    cleaned = Path(filename).stem.replace("-", " ").replace("_", " ").strip()
    if not cleaned:
        return "Image"
    return cleaned[0].upper() + cleaned[1:]


def mime_type_for(filename: str) -> str:
    return MIME_TYPES.get(Path(filename).suffix.lower(), "image/jpeg")


class MediaHydrator:
    def __init__(
        self,
        store: DocumentStore,
        tenant_id: str,
        pack_path: Path,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.store = store
        self.tenant_id = tenant_id
        self.pack_path = Path(pack_path)
        self.client = client
        self.mapping: Dict[str, str] = {}
        self.stats = {"uploaded": 0, "reused": 0, "failed": 0, "skipped": 0}
        self.temp_dir: Optional[Path] = None

    async def hydrate(self, assets: List[AssetInfo]) -> Dict[str, str]:
        logger.info(f"Starting media hydration: {len(assets)} assets to process")
        self.temp_dir = Path(tempfile.mkdtemp(prefix="media-"))

        owns_client = self.client is None
        if owns_client:
            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(MEDIA_DOWNLOAD_TIMEOUT, connect=MEDIA_CONNECT_TIMEOUT),
                follow_redirects=True,
            )

        try:
            # Sequential: later assets dedupe against earlier uploads
            for asset in assets:
                if asset.type == "external":
                    await self._process_external(asset.path)
                elif asset.type == "local":
                    await self._process_local(asset.path)
                else:
                    logger.warning(f"Skipping unknown asset type: {asset.path}")
                    self.stats["skipped"] += 1
        finally:
            if owns_client:
                await self.client.aclose()
                self.client = None
            shutil.rmtree(self.temp_dir, ignore_errors=True)

        logger.info(
            f"Media hydration complete: Uploaded={self.stats['uploaded']}, Reused={self.stats['reused']}, "
            f"Failed={self.stats['failed']}, Skipped={self.stats['skipped']}"
        )
        return self.mapping

    async def _reuse(self, key: str) -> bool:
        if key in self.mapping:
            self.stats["reused"] += 1
            return True

        existing = await self._find_existing(filename_from(key))
        if existing:
            self.mapping[key] = existing["id"]
            self.stats["reused"] += 1
            logger.info(f"Reused: {filename_from(key)}")
            return True
        return False

    async def _process_external(self, url: str):
        try:
            if await self._reuse(url):
                return
            temp_path = await self._download(url)
            self.mapping[url] = await self._upload(temp_path)
            self.stats["uploaded"] += 1
            logger.info(f"Uploaded: {temp_path.name}")
            temp_path.unlink()
        except Exception as e:
            logger.error(f"Failed to process {url}: {e}")
            self.stats["failed"] += 1

    async def _process_local(self, file_path: str):
        resolved = Path(file_path)
        if not resolved.is_absolute():
            resolved = (self.pack_path.parent / file_path).resolve()

        if not resolved.exists():
            logger.error(f"Local file not found: {file_path}")
            self.stats["failed"] += 1
            return

        try:
            if await self._reuse(file_path):
                return
            self.mapping[file_path] = await self._upload(resolved)
            self.stats["uploaded"] += 1
            logger.info(f"Uploaded: {resolved.name}")
        except Exception as e:
            logger.error(f"Failed to process local file {file_path}: {e}")
            self.stats["failed"] += 1

    async def _download(self, url: str) -> Path:
        response = await self.client.get(url)
        response.raise_for_status()

        temp_path = self.temp_dir / filename_from(url)
        temp_path.write_bytes(response.content)
        return temp_path

    async def _upload(self, path: Path) -> str:
        media = await self.store.upload_media(
            self.tenant_id,
            path.name,
            path.read_bytes(),
            alt=alt_text_from(path.name),
            mime_type=mime_type_for(path.name),
        )
        return media["id"]

    async def _find_existing(self, filename: str) -> Optional[Dict]:
        result = await self.store.find(
            "media",
            where={"tenant": {"equals": self.tenant_id}},
            limit=MEDIA_DEDUPE_SCAN_LIMIT,
            override_access=True,
        )
        for media in result.docs:
            if media.get("filename") == filename:
                return media
        return None
