"""
Defensive accessors for stored block fields. Renderers read everything through
these so malformed values degrade to a fallback instead of raising.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from richtext.converters import convert_legacy_to_canonical, is_legacy_format
from richtext.models import empty_document, root_document

logger = logging.getLogger(__name__)

DANGEROUS_PROTOCOLS = ("javascript:", "data:", "vbscript:", "file:")


@dataclass
class SafeMedia:
    id: str
    url: Optional[str] = None
    alt: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None


def safe_text(value: Any, fallback: str = "") -> str:
    if value is None:
        return fallback
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value)
    return fallback


def safe_url(value: Any, fallback: str = "") -> str:
    url = safe_text(value, fallback)
    if not url or url == fallback:
        return fallback

    lowered = url.lower()
    if lowered.startswith(DANGEROUS_PROTOCOLS):
        logger.debug(f"Rejected dangerous URL: {url}")
        return fallback

    if lowered.startswith(("http://", "https://")):
        return url
    if lowered.startswith(("/", "#")):
        return url
    return f"https://{url}"


def safe_array(value: Any, fallback: Optional[List[Any]] = None) -> List[Any]:
    if isinstance(value, list):
        return value
    return fallback if fallback is not None else []


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def safe_media(value: Any, fallback: Optional[SafeMedia] = None) -> Optional[SafeMedia]:
    """
    Accepts a raw media id or an expanded media object.
    Objects without any id are rejected.
    """
    if not value:
        return fallback

    if isinstance(value, str):
        return SafeMedia(id=value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return SafeMedia(id=str(value))

    if isinstance(value, dict):
        media_id = safe_text(value.get("id") or value.get("_id") or value.get("_ref"))
        if not media_id:
            return fallback
        url = safe_url(value.get("url"))
        if not url:
            filename = safe_text(value.get("filename"))
            url = "" if filename.lower().startswith(DANGEROUS_PROTOCOLS) else filename
        return SafeMedia(
            id=media_id,
            url=url or None,
            alt=safe_text(value.get("alt")) or None,
            width=_number(value.get("width")),
            height=_number(value.get("height")),
        )

    return fallback


def safe_rich_text(value: Any) -> Dict[str, Any]:
    if not value:
        return empty_document()
    if isinstance(value, dict) and isinstance(value.get("root"), dict):
        return value
    if isinstance(value, list):
        if is_legacy_format(value):
            return convert_legacy_to_canonical(value)
        return root_document([node for node in value if isinstance(node, dict)])
    return empty_document()
