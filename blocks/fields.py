"""
Generic field walker for block trees. Which fields are rich text, images or
opaque JSON is decided by a FieldClassifier, so the name heuristics live here
and nowhere else.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional

from richtext.converters import is_canonical_format

from .schema import BlockSchemaRegistry, FieldType

RICH_TEXT_FIELD_NAMES = ("description", "paragraph", "additionalInfo", "coachBio")

# Kinds where a top-level `content` field is rich text. Everywhere else
# (e.g. contactInfo.items[].content) `content` is a plain textarea.
RICH_TEXT_CONTENT_KINDS = frozenset({"kallitechnia.richText", "kallitechnia.imageText"})

IMAGE_FIELD_NAMES = ("image", "backgroundImage", "logo", "icon", "thumbnail", "photo", "picture")

OPAQUE_FIELD_NAMES = frozenset({"rawData"})

BLOCK_TYPE_ALIASES = ("blockType", "block_type", "type")

# Sentinel returned by visitors that leave a field alone
UNCHANGED = object()


def resolve_block_type(raw: Any) -> Optional[str]:
    if not isinstance(raw, dict):
        return None
    for alias in BLOCK_TYPE_ALIASES:
        value = raw.get(alias)
        if value:
            return value if isinstance(value, str) else None
    return None


@dataclass(frozen=True)
class FieldContext:
    key: str
    block_type: Optional[str]
    nested: bool
    parent_key: Optional[str] = None


def _matches_name(key: str, names: Iterable[str]) -> bool:
    lowered = key.lower()
    return any(lowered == name.lower() or lowered.endswith(name.lower()) for name in names)


class FieldClassifier:
    def __init__(
        self,
        content_rich_text_kinds: FrozenSet[str] = RICH_TEXT_CONTENT_KINDS,
        opaque_fields: FrozenSet[str] = OPAQUE_FIELD_NAMES,
    ):
        self.content_rich_text_kinds = frozenset(content_rich_text_kinds)
        self.opaque_fields = frozenset(opaque_fields)

    @classmethod
    def from_registry(cls, registry: BlockSchemaRegistry) -> "FieldClassifier":
        """Derive the `content` allow-list and opaque fields from the registered kinds."""
        content_kinds = registry.kinds_with_field("content", FieldType.RICH_TEXT)
        opaque = set(OPAQUE_FIELD_NAMES)
        for slug in registry.list_known():
            for f in registry.get_kind(slug).fields_of_type(FieldType.JSON):
                opaque.add(f.name)
        return cls(frozenset(content_kinds) | RICH_TEXT_CONTENT_KINDS, frozenset(opaque))

    def is_rich_text_field(self, key: str, block_type: Optional[str] = None, nested: bool = False) -> bool:
        if key == "content":
            if nested:
                return False
            return block_type in self.content_rich_text_kinds
        return _matches_name(key, RICH_TEXT_FIELD_NAMES)

    def is_image_field(self, key: str, value: Any) -> bool:
        if not isinstance(value, str) or not _matches_name(key, IMAGE_FIELD_NAMES):
            return False
        return value.startswith(("http://", "https://", "/"))

    def is_media_reference(self, key: str, value: Any) -> bool:
        """An image field already pointing at a stored media id."""
        if not isinstance(value, str) or not value or not _matches_name(key, IMAGE_FIELD_NAMES):
            return False
        return not value.startswith(("http://", "https://", "/"))

    def is_opaque_field(self, key: str) -> bool:
        return key in self.opaque_fields


Visitor = Callable[[FieldContext, Any], Any]


def walk_fields(
    node: Dict[str, Any],
    visitor: Visitor,
    classifier: FieldClassifier,
    block_type: Optional[str] = None,
    nested: bool = False,
    parent_key: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Return a copy of `node` with every field offered to `visitor` first.

    If the visitor returns UNCHANGED the walker descends into lists (dict items
    only) and nested dicts itself. Canonical rich-text documents and opaque
    JSON fields are never descended into.
    """
    if block_type is None and not nested:
        block_type = resolve_block_type(node)

    result = dict(node)
    for key, value in node.items():
        ctx = FieldContext(key=key, block_type=block_type, nested=nested, parent_key=parent_key)
        replaced = visitor(ctx, value)
        if replaced is not UNCHANGED:
            result[key] = replaced
            continue

        if classifier.is_opaque_field(key) or is_canonical_format(value):
            continue

        if isinstance(value, list):
            result[key] = [
                walk_fields(item, visitor, classifier, block_type, True, key) if isinstance(item, dict) else item
                for item in value
            ]
        elif isinstance(value, dict):
            result[key] = walk_fields(value, visitor, classifier, block_type, True, key)

    return result
