import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorGridFSBucket
from pymongo import ASCENDING, DESCENDING

from .config import MONGO_URI, MONGO_DB_NAME, MEDIA_BUCKET, MAX_VERSIONS_PER_DOC
from .document_store import DocumentStore, FindResult
from .query import to_mongo_filter, to_mongo_id

logger = logging.getLogger(__name__)


def _from_mongo(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    doc = dict(doc)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDocumentStore(DocumentStore):
    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None, collections=None):
        super().__init__(collections)
        self.client = AsyncIOMotorClient(uri or MONGO_URI)
        self.db = self.client[db_name or MONGO_DB_NAME]
        self.media_bucket = AsyncIOMotorGridFSBucket(self.db, bucket_name=MEDIA_BUCKET)

    async def ensure_indexes(self):
        """Create necessary indexes for performance."""
        for slug, config in self.collections.items():
            col = self.db[slug]
            await col.create_index([("createdAt", ASCENDING), ("_id", ASCENDING)])
            if config.tenant_scoped:
                await col.create_index("tenant")
            if config.versions:
                await self.db[f"{slug}_versions"].create_index([("parent", ASCENDING), ("createdAt", DESCENDING)])

        await self.db["pages"].create_index([("tenant", ASCENDING), ("slug", ASCENDING)], unique=True)
        await self.db["homepages"].create_index("tenant", unique=True)
        await self.db["tenants"].create_index("code", unique=True)
        await self.db["forms"].create_index("slug", unique=True)

    async def _query(self, collection, where, limit, page) -> FindResult:
        mongo_filter = to_mongo_filter(where)
        col = self.db[collection]
        page = max(page, 1)

        cursor = (
            col.find(mongo_filter)
            .sort([("createdAt", ASCENDING), ("_id", ASCENDING)])
            .skip((page - 1) * limit)
            .limit(limit + 1)
        )
        docs = [_from_mongo(doc) async for doc in cursor]
        total = await col.count_documents(mongo_filter)

        return FindResult(
            docs=docs[:limit],
            has_next_page=len(docs) > limit,
            total_docs=total,
            page=page,
        )

    async def _get(self, collection, doc_id):
        return _from_mongo(await self.db[collection].find_one({"_id": to_mongo_id(doc_id)}))

    async def _put(self, collection, doc):
        record = dict(doc)
        record["_id"] = to_mongo_id(record.pop("id"))
        try:
            await self.db[collection].replace_one({"_id": record["_id"]}, record, upsert=True)
        except Exception as e:
            logger.error(f"Failed to save {collection} document {record['_id']}: {e}")
            raise

    async def _remove(self, collection, doc_id):
        await self.db[collection].delete_one({"_id": to_mongo_id(doc_id)})

    async def _save_version(self, collection, doc):
        versions = self.db[f"{collection}_versions"]
        await versions.insert_one({
            "parent": doc["id"],
            "version": doc,
            "createdAt": datetime.now(timezone.utc).isoformat(),
        })

        # Keep only the newest MAX_VERSIONS_PER_DOC entries
        cursor = versions.find({"parent": doc["id"]}, {"_id": 1}).sort("createdAt", DESCENDING).skip(MAX_VERSIONS_PER_DOC)
        stale = [v["_id"] async for v in cursor]
        if stale:
            await versions.delete_many({"_id": {"$in": stale}})
            logger.debug(f"Pruned {len(stale)} old versions of {collection} {doc['id']}")

    async def _store_file(self, filename, data, mime_type):
        file_id = await self.media_bucket.upload_from_stream(
            filename, data, metadata={"contentType": mime_type}
        )
        return str(file_id)

    async def close(self):
        self.client.close()
