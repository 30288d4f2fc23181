import copy
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .collections import CollectionConfig, WriteRejected, default_collections
from .query import combine_where, matches_where

logger = logging.getLogger(__name__)


@dataclass
class FindResult:
    docs: List[Dict[str, Any]] = field(default_factory=list)
    has_next_page: bool = False
    total_docs: int = 0
    page: int = 1


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


class DocumentStore(ABC):
    """
    Generic CRUD + filter store for the content collections.

    Access rules apply unless `override_access=True`; collection hooks always
    run on create/update. Concrete stores implement the raw primitives below.
    """
    def __init__(self, collections: Optional[Dict[str, CollectionConfig]] = None):
        self.collections = collections if collections is not None else default_collections()

    # --- primitives -----------------------------------------------------

    @abstractmethod
    async def _query(self, collection: str, where: Optional[Dict[str, Any]], limit: int, page: int) -> FindResult:
        pass

    @abstractmethod
    async def _get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def _put(self, collection: str, doc: Dict[str, Any]):
        pass

    @abstractmethod
    async def _remove(self, collection: str, doc_id: str):
        pass

    @abstractmethod
    async def _save_version(self, collection: str, doc: Dict[str, Any]):
        pass

    @abstractmethod
    async def _store_file(self, filename: str, data: bytes, mime_type: str) -> str:
        pass

    async def ensure_indexes(self):
        pass

    async def close(self):
        pass

    # --- public API -----------------------------------------------------

    def config(self, collection: str) -> CollectionConfig:
        if collection not in self.collections:
            raise KeyError(f"Unknown collection: {collection}")
        return self.collections[collection]

    def _check_access(self, collection: str, operation: str, user, data=None):
        result = self.config(collection).access.check(operation, user, data)
        if result is False:
            raise WriteRejected(collection, f"{operation} not allowed")
        return result

    async def find(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        limit: int = 10,
        page: int = 1,
        depth: int = 0,
        user: Optional[Dict[str, Any]] = None,
        override_access: bool = False,
    ) -> FindResult:
        if not override_access:
            constraint = self.config(collection).access.check("read", user)
            if constraint is False:
                return FindResult(page=page)
            if isinstance(constraint, dict):
                where = combine_where(where, constraint)

        result = await self._query(collection, where, limit, page)
        if depth > 0:
            result.docs = [await self._populate(collection, doc, depth) for doc in result.docs]
        return result

    async def find_by_id(
        self,
        collection: str,
        doc_id: str,
        depth: int = 0,
        user: Optional[Dict[str, Any]] = None,
        override_access: bool = False,
    ) -> Optional[Dict[str, Any]]:
        doc = await self._get(collection, doc_id)
        if doc is None:
            return None
        if not override_access:
            constraint = self.config(collection).access.check("read", user)
            if constraint is False or (isinstance(constraint, dict) and not matches_where(doc, constraint)):
                return None
        if depth > 0:
            doc = await self._populate(collection, doc, depth)
        return doc

    async def create(
        self,
        collection: str,
        data: Dict[str, Any],
        user: Optional[Dict[str, Any]] = None,
        override_access: bool = False,
    ) -> Dict[str, Any]:
        config = self.config(collection)
        if not override_access:
            self._check_access(collection, "create", user, data)

        doc = await config.run_hooks(self, copy.deepcopy(data), None, "create")
        doc["id"] = doc.get("id") or uuid.uuid4().hex
        doc["createdAt"] = doc["updatedAt"] = utcnow()

        await self._put(collection, doc)
        logger.debug(f"Created {collection} document {doc['id']}")
        return doc

    async def update(
        self,
        collection: str,
        doc_id: str,
        data: Dict[str, Any],
        user: Optional[Dict[str, Any]] = None,
        override_access: bool = False,
    ) -> Dict[str, Any]:
        config = self.config(collection)
        original = await self._get(collection, doc_id)
        if original is None:
            raise WriteRejected(collection, f"document {doc_id} not found")

        if not override_access:
            constraint = self._check_access(collection, "update", user, data)
            if isinstance(constraint, dict) and not matches_where(original, constraint):
                raise WriteRejected(collection, "update not allowed")

        merged = copy.deepcopy(original)
        merged.update(copy.deepcopy(data))
        doc = await config.run_hooks(self, merged, original, "update")
        doc["id"] = original["id"]
        doc["updatedAt"] = utcnow()

        if config.versions:
            await self._save_version(collection, original)
        await self._put(collection, doc)
        return doc

    async def delete(
        self,
        collection: str,
        doc_id: str,
        user: Optional[Dict[str, Any]] = None,
        override_access: bool = False,
    ):
        original = await self._get(collection, doc_id)
        if original is None:
            return
        if not override_access:
            constraint = self._check_access(collection, "delete", user)
            if isinstance(constraint, dict) and not matches_where(original, constraint):
                raise WriteRejected(collection, "delete not allowed")
        await self._remove(collection, doc_id)

    async def upload_media(
        self,
        tenant_id: str,
        filename: str,
        data: bytes,
        alt: str,
        mime_type: str,
    ) -> Dict[str, Any]:
        """Store the file and create its media record for the tenant."""
        file_id = await self._store_file(filename, data, mime_type)
        return await self.create(
            "media",
            {
                "tenant": tenant_id,
                "filename": filename,
                "alt": alt,
                "mimeType": mime_type,
                "filesize": len(data),
                "fileId": file_id,
                "url": f"/media/{file_id}/{filename}",
            },
            override_access=True,
        )

    async def _populate(self, collection: str, doc: Dict[str, Any], depth: int) -> Dict[str, Any]:
        relationships = self.config(collection).relationships
        if not relationships:
            return doc

        populated = dict(doc)
        for name, target in relationships.items():
            value = doc.get(name)
            if isinstance(value, str) and value:
                related = await self._get(target, value)
                if related is not None:
                    populated[name] = await self._populate(target, related, depth - 1) if depth > 1 else related
        return populated
