import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


class FieldType(Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    RICH_TEXT = "richText"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    SELECT = "select"
    URL = "url"
    UPLOAD = "upload"
    RELATIONSHIP = "relationship"
    ARRAY = "array"
    JSON = "json"


PLAIN_TEXT_TYPES = (FieldType.TEXT, FieldType.TEXTAREA)


@dataclass
class FieldSchema:
    name: str
    type: FieldType
    required: bool = False
    max_length: Optional[int] = None
    options: List[str] = field(default_factory=list)
    default: Any = None
    fields: List["FieldSchema"] = field(default_factory=list)  # array item fields
    min_items: Optional[int] = None
    label: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.label or self.name

    def json_schema(self) -> Dict[str, Any]:
        """JSON schema fragment for this field. Unset values (null) are always accepted."""
        if self.type in PLAIN_TEXT_TYPES or self.type == FieldType.URL:
            schema: Dict[str, Any] = {"type": ["string", "null"]}
            if self.max_length:
                schema["maxLength"] = self.max_length
            return schema
        if self.type == FieldType.RICH_TEXT:
            return {
                "type": ["object", "null"],
                "required": ["root"],
                "properties": {"root": {"type": "object", "required": ["type", "children"]}},
            }
        if self.type == FieldType.NUMBER:
            return {"type": ["number", "null"]}
        if self.type == FieldType.CHECKBOX:
            return {"type": ["boolean", "null"]}
        if self.type == FieldType.SELECT:
            return {"enum": list(self.options) + [None]}
        if self.type in (FieldType.UPLOAD, FieldType.RELATIONSHIP):
            return {"type": ["string", "integer", "object", "null"]}
        if self.type == FieldType.ARRAY:
            schema = {
                "type": ["array", "null"],
                "items": _object_schema(self.fields),
            }
            if self.min_items:
                schema["minItems"] = self.min_items
            return schema
        return {}


def _object_schema(fields: List[FieldSchema]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {f.name: f.json_schema() for f in fields},
        "required": [f.name for f in fields if f.required],
    }


@dataclass
class BlockKind:
    """A named, versioned field schema. `slug` is the qualified kind, e.g. `acme.hero`."""
    slug: str
    fields: List[FieldSchema] = field(default_factory=list)
    schema_version: int = 1
    label: Optional[str] = None

    @property
    def tenant_code(self) -> str:
        return self.slug.split(".", 1)[0] if "." in self.slug else ""

    @property
    def name(self) -> str:
        return self.slug.split(".", 1)[1] if "." in self.slug else self.slug

    def get_field(self, name: str) -> Optional[FieldSchema]:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def fields_of_type(self, *types: FieldType) -> List[FieldSchema]:
        return [f for f in self.fields if f.type in types]

    def plain_text_limits(self, array_name: Optional[str] = None) -> Dict[str, Optional[int]]:
        """
        Plain text (text/textarea) field names mapped to their max length, either
        for the block itself or for the items of one of its array fields.
        """
        fields = self.fields
        if array_name is not None:
            array_field = self.get_field(array_name)
            if array_field is None or array_field.type != FieldType.ARRAY:
                return {}
            fields = array_field.fields
        return {f.name: f.max_length for f in fields if f.type in PLAIN_TEXT_TYPES}

    def json_schema(self) -> Dict[str, Any]:
        schema = _object_schema(self.fields)
        schema["properties"].update({
            "blockType": {"const": self.slug},
            "schemaVersion": {"type": "integer", "minimum": 1},
            "__deprecated": {"type": "boolean"},
        })
        schema["required"] = ["blockType"] + schema["required"]
        return schema


class BlockSchemaRegistry:
    """
    Per-tenant catalog of block kinds. Built once at startup (see
    tenants.registry) and read-only afterwards.
    """
    def __init__(self):
        self._kinds: Dict[str, BlockKind] = {}
        self._by_tenant: Dict[str, List[str]] = {}

    @staticmethod
    def is_block_type_for_tenant(block_type: str, tenant_code: str) -> bool:
        return isinstance(block_type, str) and block_type.startswith(f"{tenant_code}.")

    def register_kind(self, tenant_code: str, kind: BlockKind) -> bool:
        if not self.is_block_type_for_tenant(kind.slug, tenant_code):
            logger.warning(
                f"Block kind '{kind.slug}' does not start with '{tenant_code}.', not registering it"
            )
            return False

        if kind.slug not in self._kinds:
            self._by_tenant.setdefault(tenant_code, []).append(kind.slug)
        self._kinds[kind.slug] = kind
        return True

    def register_tenant(self, tenant_code: str, kinds: List[BlockKind]) -> int:
        registered = sum(1 for kind in kinds if self.register_kind(tenant_code, kind))
        logger.debug(f"Registered {registered} block kinds for tenant {tenant_code}")
        return registered

    def get_kind(self, slug: str) -> Optional[BlockKind]:
        return self._kinds.get(slug)

    def kinds_for_tenant(self, tenant_code: str) -> List[BlockKind]:
        return [self._kinds[slug] for slug in self._by_tenant.get(tenant_code, [])]

    def tenant_codes(self) -> List[str]:
        return list(self._by_tenant.keys())

    def is_known(self, slug: str) -> bool:
        return slug in self._kinds

    def list_known(self) -> Set[str]:
        return set(self._kinds.keys())

    def kinds_with_field(self, name: str, field_type: FieldType) -> Set[str]:
        """Kinds declaring a top-level field `name` of the given type."""
        matches = set()
        for slug, kind in self._kinds.items():
            f = kind.get_field(name)
            if f is not None and f.type == field_type:
                matches.add(slug)
        return matches
