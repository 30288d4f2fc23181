import os
from dotenv import load_dotenv, find_dotenv

# Load environment variables from .env file
load_dotenv(find_dotenv())

# Sync packs live under <SYNC_PACK_ROOT>/<tenant>/
SYNC_PACK_ROOT = os.getenv("SYNC_PACK_ROOT", "sync-packs")

# Media download settings
MEDIA_DOWNLOAD_TIMEOUT = float(os.getenv("MEDIA_DOWNLOAD_TIMEOUT", 30))
MEDIA_CONNECT_TIMEOUT = float(os.getenv("MEDIA_CONNECT_TIMEOUT", 60))

# Existing media scanned per tenant when deduplicating by filename
MEDIA_DEDUPE_SCAN_LIMIT = int(os.getenv("MEDIA_DEDUPE_SCAN_LIMIT", 100))
