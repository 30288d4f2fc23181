import argparse
import asyncio
import logging
import sys
from datetime import datetime

from blocks.fields import FieldClassifier
from storage.config import ConfigError, require_settings, setup_logging
from storage.mongo_store import MongoDocumentStore
from tenants.registry import build_schema_registry

from .pack import SyncPackError
from .syncer import SiteSyncer

setup_logging()
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Import a sync pack into the CMS")
    parser.add_argument("-t", "--tenant", help="Tenant code, e.g. kallitechnia")
    return parser.parse_args(argv)


async def main(argv=None):
    args = parse_args(argv)
    if not args.tenant:
        logger.critical("Missing required argument: --tenant <code>")
        sys.exit(1)

    try:
        require_settings("MONGO_URI")
    except ConfigError as e:
        logger.critical(f"{e}")
        sys.exit(1)

    start_time = datetime.now()
    store = MongoDocumentStore()
    try:
        await store.ensure_indexes()
        classifier = FieldClassifier.from_registry(build_schema_registry())
        syncer = SiteSyncer(store, classifier=classifier)
        await syncer.sync(args.tenant)
    except SyncPackError as e:
        logger.critical(f"{e}")
        sys.exit(1)
    except Exception as e:
        logger.critical(f"Sync failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await store.close()

    logger.info(f"Execution time: {datetime.now() - start_time}")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
