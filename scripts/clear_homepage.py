import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, Optional

from storage.config import ConfigError, require_settings, setup_logging
from storage.document_store import DocumentStore
from storage.mongo_store import MongoDocumentStore

setup_logging()
logger = logging.getLogger(__name__)


async def clear_homepage(store: DocumentStore, tenant_code: str) -> Optional[Dict[str, Any]]:
    """Empty the homepage sections of a tenant. Returns None when it has no homepage."""
    tenants = await store.find("tenants", where={"code": {"equals": tenant_code}}, limit=1, override_access=True)
    if not tenants.docs:
        raise LookupError(f'Tenant "{tenant_code}" not found.')

    homepages = await store.find(
        "homepages", where={"tenant": {"equals": tenants.docs[0]["id"]}}, limit=1, override_access=True
    )
    if not homepages.docs:
        logger.info(f'No homepage found for tenant "{tenant_code}"')
        return None

    homepage = homepages.docs[0]
    logger.info(f"Clearing sections from homepage: {homepage['id']}")
    return await store.update("homepages", homepage["id"], {"sections": []}, override_access=True)


async def main(argv=None):
    parser = argparse.ArgumentParser(description="Remove every section from a tenant's homepage")
    parser.add_argument("tenant", help="Tenant code, e.g. kallitechnia")
    args = parser.parse_args(argv)

    try:
        require_settings("MONGO_URI")
    except ConfigError as e:
        logger.critical(f"{e}")
        sys.exit(1)

    store = MongoDocumentStore()
    try:
        if await clear_homepage(store, args.tenant):
            logger.info("Homepage sections cleared successfully!")
            logger.info(f"You can now run: sync-site --tenant {args.tenant}")
    except Exception as e:
        logger.critical(f"Failed to clear homepage: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await store.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
