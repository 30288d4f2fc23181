"""
Repair passes applied by the migration engine. Each pass maps a block list to
a new block list without mutating its input, and is idempotent: running it on
its own output changes nothing.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from blocks.fields import UNCHANGED, FieldClassifier, FieldContext, walk_fields
from blocks.models import UnknownBlock, parse_block
from blocks.normalizer import BlockNormalizer, resolve_block_type
from blocks.schema import BlockSchemaRegistry
from richtext.converters import (
    extract_plain_text,
    has_empty_root,
    is_canonical_format,
    is_stringified_canonical,
    is_structurally_valid,
    to_canonical,
)
from richtext.models import empty_document, paragraph_node

logger = logging.getLogger(__name__)

DEFAULT_TEXT_LIMIT = 500

# Plain-text fields checked when a block's kind is not registered
FALLBACK_PLAIN_TEXT = {"items": {"content": DEFAULT_TEXT_LIMIT}}


class RepairPass(ABC):
    name = "repair"

    def __init__(
        self,
        schema_registry: Optional[BlockSchemaRegistry] = None,
        classifier: Optional[FieldClassifier] = None,
    ):
        self.schema_registry = schema_registry or BlockSchemaRegistry()
        if classifier is None:
            classifier = FieldClassifier.from_registry(self.schema_registry) if schema_registry else FieldClassifier()
        self.classifier = classifier

    @abstractmethod
    def repair_block(self, block: Dict[str, Any]) -> Dict[str, Any]:
        pass

    def repair_value(self, value: Any) -> Any:
        """Repair a document-level rich-text field (e.g. posts.content)."""
        return value

    def repair_blocks(self, blocks: Any) -> Tuple[Any, bool]:
        if not isinstance(blocks, list):
            return blocks, False
        repaired = [self.repair_block(block) if isinstance(block, dict) else block for block in blocks]
        return repaired, repaired != blocks


class FormatMigrationPass(RepairPass):
    """Legacy and plain-string rich-text fields -> canonical documents."""
    name = "format-migration"

    def __init__(self, schema_registry=None, classifier=None):
        super().__init__(schema_registry, classifier)
        self.normalizer = BlockNormalizer(self.classifier)

    def repair_block(self, block):
        return self.normalizer.convert_fields(block)

    def repair_value(self, value):
        return to_canonical(value)


def _fill_empty_root(doc: Dict[str, Any]) -> Dict[str, Any]:
    fixed = dict(doc)
    fixed["root"] = dict(doc["root"])
    fixed["root"]["children"] = [paragraph_node()]
    return fixed


class EmptyStructurePass(RepairPass):
    """Canonical documents whose root has no children get one empty paragraph."""
    name = "empty-structure"

    def _visit(self, ctx: FieldContext, value: Any) -> Any:
        if has_empty_root(value):
            return _fill_empty_root(value)
        return UNCHANGED

    def repair_block(self, block):
        return walk_fields(block, self._visit, self.classifier)

    def repair_value(self, value):
        return _fill_empty_root(value) if has_empty_root(value) else value


class ValidationFixPass(RepairPass):
    """Canonical-shaped documents that fail the structural check are reset."""
    name = "validation-fix"

    @staticmethod
    def _is_broken(value: Any) -> bool:
        return isinstance(value, dict) and "root" in value and not is_structurally_valid(value)

    def _visit(self, ctx: FieldContext, value: Any) -> Any:
        if self._is_broken(value):
            logger.info(f"Replacing invalid rich text in field '{ctx.key}' of {ctx.block_type}")
            return empty_document()
        return UNCHANGED

    def repair_block(self, block):
        return walk_fields(block, self._visit, self.classifier)

    def repair_value(self, value):
        return empty_document() if self._is_broken(value) else value


class CorruptionFixPass(RepairPass):
    """
    Plain-text fields holding a rich-text document (as a dict or a JSON string)
    get the document's plain text back, truncated to the field's max length.
    """
    name = "corruption-fix"

    def _plain_text_fields(self, block: Dict[str, Any]) -> Tuple[Dict[str, Optional[int]], Dict[str, Dict[str, Optional[int]]]]:
        variant = parse_block(block, self.schema_registry)
        if isinstance(variant, UnknownBlock):
            return {}, FALLBACK_PLAIN_TEXT

        kind = variant.kind
        top_level = {
            name: limit for name, limit in kind.plain_text_limits().items()
            if not self.classifier.is_rich_text_field(name, kind.slug)
        }
        nested = {}
        for array_field in kind.fields:
            limits = kind.plain_text_limits(array_field.name)
            limits = {
                name: limit for name, limit in limits.items()
                if not self.classifier.is_rich_text_field(name, kind.slug, nested=True)
            }
            if limits:
                nested[array_field.name] = limits
        return top_level, nested

    def _item_limits(self, item: Dict[str, Any], declared: Dict[str, Optional[int]], block_type: Optional[str]) -> Dict[str, Optional[int]]:
        limits = dict(declared)
        for key, value in item.items():
            if key in limits or self.classifier.is_rich_text_field(key, block_type, nested=True):
                continue
            if is_canonical_format(value) or is_stringified_canonical(value):
                limits[key] = DEFAULT_TEXT_LIMIT
        return limits

    @staticmethod
    def _fix_text(value: Any, limit: Optional[int]) -> Any:
        if not value or (isinstance(value, str) and not is_stringified_canonical(value)):
            return value
        limit = limit or DEFAULT_TEXT_LIMIT
        if isinstance(value, str) or is_canonical_format(value):
            return extract_plain_text(value)[:limit]
        return ""

    def _fix_fields(self, data: Dict[str, Any], limits: Dict[str, Optional[int]]) -> Dict[str, Any]:
        fixed = dict(data)
        for name, limit in limits.items():
            if name in data:
                fixed[name] = self._fix_text(data[name], limit)
        return fixed

    def repair_block(self, block):
        block_type = resolve_block_type(block)
        top_level, nested = self._plain_text_fields(block)
        fixed = self._fix_fields(block, top_level)

        for array_name, declared in nested.items():
            items = block.get(array_name)
            if isinstance(items, list):
                fixed[array_name] = [
                    self._fix_fields(item, self._item_limits(item, declared, block_type)) if isinstance(item, dict) else item
                    for item in items
                ]
        return fixed


PASSES = {
    FormatMigrationPass.name: FormatMigrationPass,
    EmptyStructurePass.name: EmptyStructurePass,
    CorruptionFixPass.name: CorruptionFixPass,
    ValidationFixPass.name: ValidationFixPass,
}


def build_passes(names: List[str], schema_registry: Optional[BlockSchemaRegistry] = None) -> List[RepairPass]:
    return [PASSES[name](schema_registry) for name in names]
