import json
import logging
import uuid
from pathlib import Path
from typing import Optional, Dict, Any

from .config import LOCAL_STORAGE_PATH, MAX_VERSIONS_PER_DOC
from .document_store import DocumentStore, FindResult, utcnow
from .query import matches_where

logger = logging.getLogger(__name__)


class LocalDocumentStore(DocumentStore):
    """
    Same interface as MongoDocumentStore, backed by one JSON file per document:
    <base>/<collection>/<id>.json, versions under <base>/versions/<collection>/.
    """
    def __init__(self, base_path: str = LOCAL_STORAGE_PATH, collections=None):
        super().__init__(collections)
        self.base = Path(base_path)
        self.versions_dir = self.base / "versions"
        self.files_dir = self.base / "files"

        self.base.mkdir(parents=True, exist_ok=True)
        self.files_dir.mkdir(parents=True, exist_ok=True)

    def _collection_dir(self, collection: str) -> Path:
        path = self.base / collection
        path.mkdir(parents=True, exist_ok=True)
        return path

    async def _query(self, collection, where, limit, page) -> FindResult:
        docs = []
        for doc_file in self._collection_dir(collection).glob("*.json"):
            doc = json.loads(doc_file.read_text())
            if matches_where(doc, where):
                docs.append(doc)

        docs.sort(key=lambda d: (d.get("createdAt", ""), d.get("id", "")))
        page = max(page, 1)
        start = (page - 1) * limit
        return FindResult(
            docs=docs[start:start + limit],
            has_next_page=start + limit < len(docs),
            total_docs=len(docs),
            page=page,
        )

    async def _get(self, collection, doc_id) -> Optional[Dict[str, Any]]:
        path = self._collection_dir(collection) / f"{doc_id}.json"
        if path.exists():
            return json.loads(path.read_text())
        return None

    async def _put(self, collection, doc):
        path = self._collection_dir(collection) / f"{doc['id']}.json"
        path.write_text(json.dumps(doc, indent=2, ensure_ascii=False))

    async def _remove(self, collection, doc_id):
        path = self._collection_dir(collection) / f"{doc_id}.json"
        if path.exists():
            path.unlink()

    async def _save_version(self, collection, doc):
        version_dir = self.versions_dir / collection
        version_dir.mkdir(parents=True, exist_ok=True)

        version_path = version_dir / f"{doc['id']}_{utcnow().replace(':', '-')}_{uuid.uuid4().hex[:6]}.json"
        version_path.write_text(json.dumps(doc, indent=2, ensure_ascii=False))

        versions = sorted(version_dir.glob(f"{doc['id']}_*.json"), key=lambda p: p.stat().st_mtime_ns)
        for stale in versions[:-MAX_VERSIONS_PER_DOC]:
            stale.unlink()

    async def _store_file(self, filename, data, mime_type):
        file_id = uuid.uuid4().hex
        (self.files_dir / f"{file_id}_{Path(filename).name}").write_bytes(data)
        return file_id

    def version_count(self, collection: str, doc_id: str) -> int:
        version_dir = self.versions_dir / collection
        if not version_dir.exists():
            return 0
        return len(list(version_dir.glob(f"{doc_id}_*.json")))
