import logging
from typing import Any, Dict, Iterable, Optional

from storage.config import MIGRATION_BATCH_SIZE
from storage.document_store import DocumentStore

from .passes import RepairPass

logger = logging.getLogger(__name__)

BLOCK_FIELD = "sections"
# Collections that also carry a document-level rich-text field
VALUE_FIELDS = {"posts": "content"}


class MigrationEngine:
    """
    Pages through stored documents and writes back the output of one repair pass.
    A document is only written when the pass actually changed something.
    """
    def __init__(self, store: DocumentStore, repair_pass: RepairPass, batch_size: int = MIGRATION_BATCH_SIZE):
        self.store = store
        self.repair_pass = repair_pass
        self.batch_size = batch_size

    def repair_document(self, collection: str, doc: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Returns the fields to write, or None when the document needs nothing."""
        changes = {}

        if BLOCK_FIELD in doc:
            sections, changed = self.repair_pass.repair_blocks(doc[BLOCK_FIELD])
            if changed:
                changes[BLOCK_FIELD] = sections

        value_field = VALUE_FIELDS.get(collection)
        if value_field and doc.get(value_field) is not None:
            value = self.repair_pass.repair_value(doc[value_field])
            if value != doc[value_field]:
                changes[value_field] = value

        return changes or None

    async def migrate_collection(self, collection: str) -> Dict[str, int]:
        stats = {"migrated": 0, "skipped": 0, "failed": 0}
        page = 1

        while True:
            result = await self.store.find(
                collection, limit=self.batch_size, page=page, depth=0, override_access=True
            )
            if not result.docs:
                break

            for doc in result.docs:
                doc_id = doc.get("id")
                try:
                    changes = self.repair_document(collection, doc)
                    if changes is None:
                        stats["skipped"] += 1
                        continue

                    await self.store.update(collection, doc_id, changes, override_access=True)
                    stats["migrated"] += 1
                    logger.info(f"[{self.repair_pass.name}] Updated {collection} {doc_id}")
                except Exception as e:
                    stats["failed"] += 1
                    logger.error(f"[{self.repair_pass.name}] Failed to update {collection} {doc_id}: {e}")

            if not result.has_next_page:
                break
            page += 1

        return stats

    async def run(self, collections: Iterable[str]) -> Dict[str, Dict[str, int]]:
        logger.info(f"Running {self.repair_pass.name}...")
        results = {}
        for collection in collections:
            logger.info(f"Processing {collection}...")
            results[collection] = await self.migrate_collection(collection)

        logger.info(f"{self.repair_pass.name} summary:")
        for collection, stats in results.items():
            logger.info(
                f"  {collection}: {stats['migrated']} migrated, {stats['skipped']} skipped, {stats['failed']} failed"
            )
        return results
