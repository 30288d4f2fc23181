import logging
from typing import Any, Dict, List, Optional

from blocks.fields import UNCHANGED, FieldClassifier, FieldContext, walk_fields
from blocks.normalizer import BlockNormalizer

logger = logging.getLogger(__name__)


class BlockHydrator:
    """Swaps image URLs for media ids, then converts rich-text fields."""

    def __init__(self, media_mapping: Dict[str, str], classifier: Optional[FieldClassifier] = None):
        self.media_mapping = media_mapping
        self.classifier = classifier or FieldClassifier()
        self.normalizer = BlockNormalizer(self.classifier)

    def _visit(self, ctx: FieldContext, value: Any) -> Any:
        if not self.classifier.is_image_field(ctx.key, value):
            return UNCHANGED

        media_id = self.media_mapping.get(value)
        if media_id:
            return media_id
        logger.warning(f"Image URL not found in mapping: {value}")
        return value

    def hydrate_block(self, block: Any) -> Any:
        if not isinstance(block, dict):
            return block
        return self.normalizer.convert_fields(walk_fields(block, self._visit, self.classifier))


def hydrate_blocks(
    blocks: List[Any],
    media_mapping: Dict[str, str],
    classifier: Optional[FieldClassifier] = None,
) -> List[Any]:
    hydrator = BlockHydrator(media_mapping, classifier)
    return [hydrator.hydrate_block(block) for block in blocks or []]
