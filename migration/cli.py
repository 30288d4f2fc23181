import asyncio
import logging
import sys
from datetime import datetime
from typing import List

from storage.config import ConfigError, require_settings, setup_logging
from storage.mongo_store import MongoDocumentStore
from tenants.registry import build_schema_registry

from .engine import MigrationEngine
from .passes import (
    CorruptionFixPass,
    EmptyStructurePass,
    FormatMigrationPass,
    ValidationFixPass,
    build_passes,
)

setup_logging()
logger = logging.getLogger(__name__)

TARGET_COLLECTIONS = ["pages", "homepages", "posts"]

ALL_PASSES = [
    FormatMigrationPass.name,
    EmptyStructurePass.name,
    CorruptionFixPass.name,
    ValidationFixPass.name,
]


async def main(pass_names: List[str]):
    start_time = datetime.now()

    try:
        require_settings("MONGO_URI")
    except ConfigError as e:
        logger.critical(f"{e}")
        sys.exit(1)

    store = MongoDocumentStore()
    try:
        schema_registry = build_schema_registry()
        for repair_pass in build_passes(pass_names, schema_registry):
            engine = MigrationEngine(store, repair_pass)
            await engine.run(TARGET_COLLECTIONS)
    except Exception as e:
        logger.critical(f"Fatal error during migration: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await store.close()

    logger.info(f"Execution time: {datetime.now() - start_time}")


def migrate_rich_text():
    asyncio.run(main([FormatMigrationPass.name]))


def fix_empty_rich_text():
    asyncio.run(main([EmptyStructurePass.name]))


def fix_corrupted_rich_text():
    asyncio.run(main([CorruptionFixPass.name]))


def validate_rich_text():
    asyncio.run(main([ValidationFixPass.name]))


def repair_all():
    asyncio.run(main(ALL_PASSES))


if __name__ == "__main__":
    repair_all()
