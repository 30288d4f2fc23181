"""
Render selection: turns a document's stored sections into HTML fragments for
one tenant, skipping anything that is malformed, unknown, foreign to the tenant
or fails to render. One broken block never blanks the page.
"""
import logging
from collections import OrderedDict
from typing import Any, Iterator, List, Optional

from markupsafe import Markup

from blocks.normalizer import resolve_block_type

from . import config
from .fallbacks import unknown_section
from .registry import RenderContext, RendererRegistry

logger = logging.getLogger(__name__)


class WarningLog:
    """Process-wide, bounded record of warning keys already logged."""
    def __init__(self, limit: int = config.WARN_ONCE_LIMIT):
        self.limit = limit
        self._seen: "OrderedDict[str, None]" = OrderedDict()

    def warn_once(self, key: str, message: str, level: int = logging.WARNING, exc_info: bool = False) -> bool:
        if key in self._seen:
            return False
        self._seen[key] = None
        if len(self._seen) > self.limit:
            self._seen.popitem(last=False)
        logger.log(level, message, exc_info=exc_info)
        return True

    def clear(self):
        self._seen.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._seen


warnings = WarningLog()


def iter_sections(
    sections: Any,
    tenant_code: str,
    registry: RendererRegistry,
    context: Optional[RenderContext] = None,
    development: Optional[bool] = None,
) -> Iterator[Markup]:
    if development is None:
        development = config.IS_DEVELOPMENT
    if context is None:
        context = RenderContext(tenant_code=tenant_code)
    if not isinstance(sections, list):
        return

    for index, section in enumerate(sections):
        if not isinstance(section, dict):
            warnings.warn_once(f"invalid-section-{index}", f"Skipping invalid section at index {index}")
            continue

        block_type = resolve_block_type(section)
        if not block_type:
            warnings.warn_once(
                f"missing-blocktype-{index}", f"Skipping section at index {index} - missing blockType"
            )
            continue

        if not registry.is_known(block_type):
            warnings.warn_once(f"unknown-block-{block_type}", f"Unknown block type: {block_type}")
            placeholder = unknown_section(block_type, development)
            if placeholder:
                yield placeholder
            continue

        if not block_type.startswith(f"{tenant_code}."):
            warnings.warn_once(
                f"tenant-mismatch-{block_type}",
                f"Block type '{block_type}' does not match tenant '{tenant_code}' - skipping",
            )
            continue

        renderer = registry.resolve(block_type)
        if renderer is None:
            warnings.warn_once(f"no-renderer-{block_type}", f"No renderer found for block type: {block_type}")
            placeholder = unknown_section(block_type, development)
            if placeholder:
                yield placeholder
            continue

        fields = dict(section)
        fields["blockType"] = block_type
        try:
            html = renderer(fields, context)
        except Exception as e:
            warnings.warn_once(
                f"renderer-error-{block_type}",
                f"Error rendering {block_type}: {e}",
                level=logging.ERROR,
                exc_info=development,
            )
            continue

        if html:
            yield html


def render_sections(
    sections: Any,
    tenant_code: str,
    registry: RendererRegistry,
    context: Optional[RenderContext] = None,
    development: Optional[bool] = None,
) -> Optional[List[Markup]]:
    """All rendered sections in stored order, or None when nothing rendered."""
    rendered = list(iter_sections(sections, tenant_code, registry, context, development))
    return rendered or None
