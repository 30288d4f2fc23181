import logging
from typing import Any, Callable, Dict, List, Optional

from richtext.converters import convert_plain_text_to_canonical, to_canonical
from richtext.models import empty_document

from .fields import UNCHANGED, FieldClassifier, FieldContext, resolve_block_type, walk_fields

logger = logging.getLogger(__name__)

SCHEMA_VERSION_ALIASES = ("schemaVersion", "schema_version")

CURRENT_SCHEMA_VERSION = 1

# Upgrade steps keyed by the version they upgrade *from*. Each takes a block
# dict and returns it at version + 1. No version 2 exists yet, so the chain is
# empty and every block is pinned to CURRENT_SCHEMA_VERSION.
UPGRADES: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {}


class InvalidBlock(ValueError):
    """Raised when a raw block has no usable shape or kind."""


def _kind_name(block_type: str) -> str:
    return block_type.split(".", 1)[1] if "." in block_type else block_type


def _hero_defaults(block: Dict[str, Any]):
    for key in ("title", "subtitle", "ctaLabel", "ctaUrl"):
        block[key] = block.get(key) or ""


def _rich_text_defaults(block: Dict[str, Any]):
    if not block.get("content"):
        block["content"] = empty_document()


def _gallery_defaults(block: Dict[str, Any]):
    if not isinstance(block.get("images"), list):
        block["images"] = []


def _cta_defaults(block: Dict[str, Any]):
    for key in ("title", "buttonLabel", "buttonUrl"):
        block[key] = block.get(key) or ""
    if not block.get("description"):
        block["description"] = empty_document()


KIND_DEFAULTS = {
    "hero": _hero_defaults,
    "richText": _rich_text_defaults,
    "imageGallery": _gallery_defaults,
    "cta": _cta_defaults,
}


def upgrade_schema_version(block: Dict[str, Any], version: Any) -> Dict[str, Any]:
    """Walk the upgrade chain up to CURRENT_SCHEMA_VERSION."""
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        version = 1

    while version < CURRENT_SCHEMA_VERSION and version in UPGRADES:
        block = UPGRADES[version](block)
        version += 1

    # Anything the chain cannot account for is pinned to the current version
    block["schemaVersion"] = CURRENT_SCHEMA_VERSION
    return block


class BlockNormalizer:
    """
    Produces complete, defaulted, format-converted blocks from raw stored ones.
    """
    def __init__(self, classifier: Optional[FieldClassifier] = None):
        self.classifier = classifier or FieldClassifier()

    def normalize(self, raw: Any) -> Dict[str, Any]:
        if not isinstance(raw, dict):
            raise InvalidBlock("Block must be an object")

        block_type = resolve_block_type(raw)
        if not block_type:
            raise InvalidBlock("Block must have a blockType")

        version = None
        for alias in SCHEMA_VERSION_ALIASES:
            if raw.get(alias):
                version = raw[alias]
                break

        block = dict(raw)
        block["blockType"] = block_type
        block["__deprecated"] = bool(raw.get("__deprecated") or False)
        block = upgrade_schema_version(block, version)

        if "." not in block_type:
            logger.warning(f"Block type '{block_type}' missing tenant prefix")

        apply_defaults = KIND_DEFAULTS.get(_kind_name(block_type))
        if apply_defaults:
            apply_defaults(block)

        return self.convert_fields(block)

    def normalize_many(self, raws: Any) -> List[Dict[str, Any]]:
        if not isinstance(raws, list):
            return []

        normalized = []
        for index, raw in enumerate(raws):
            try:
                normalized.append(self.normalize(raw))
            except InvalidBlock as e:
                logger.error(f"Dropping block at position {index}: {e}")
        return normalized

    def convert_fields(self, block: Dict[str, Any]) -> Dict[str, Any]:
        """Deep rich-text conversion only, without metadata or defaults."""
        return walk_fields(block, self._visit, self.classifier)

    def _visit(self, ctx: FieldContext, value: Any) -> Any:
        if self.classifier.is_rich_text_field(ctx.key, ctx.block_type, ctx.nested):
            if value is None:
                return UNCHANGED
            return to_canonical(value)

        if ctx.key == "paragraphs" and isinstance(value, list):
            return self._convert_paragraphs(value, ctx.block_type)

        return UNCHANGED

    def _convert_paragraphs(self, items: List[Any], block_type: Optional[str]) -> List[Any]:
        converted = []
        for item in items:
            if isinstance(item, str):
                if item.strip():
                    converted.append({"paragraph": convert_plain_text_to_canonical(item)})
            elif isinstance(item, dict):
                converted.append(walk_fields(item, self._visit, self.classifier, block_type, True, "paragraphs"))
            else:
                converted.append(item)
        return converted
