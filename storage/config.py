import os
import logging
from dotenv import load_dotenv, find_dotenv

# Load environment variables from .env file
load_dotenv(find_dotenv())

# MongoDB Settings (no default URI: jobs must point at a real store explicitly)
MONGO_URI = os.getenv("MONGO_URI")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "cms")
MEDIA_BUCKET = os.getenv("MEDIA_BUCKET", "media")

# Local JSON store (tests, dry runs)
LOCAL_STORAGE_PATH = os.getenv("LOCAL_STORAGE_PATH", "data/store")

# Drafts/versions kept per document before the oldest are pruned
MAX_VERSIONS_PER_DOC = int(os.getenv("MAX_VERSIONS_PER_DOC", 15))

# Migration Settings
MIGRATION_BATCH_SIZE = int(os.getenv("MIGRATION_BATCH_SIZE", 100))

# Logging Configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


class ConfigError(RuntimeError):
    """Required configuration is missing. Not recoverable."""


def require_settings(*names: str):
    missing = [name for name in names if not globals().get(name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")


def setup_logging():
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
