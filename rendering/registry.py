import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set

from markupsafe import Markup

from blocks.schema import BlockSchemaRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderContext:
    tenant_code: str
    page_slug: Optional[str] = None
    is_homepage: bool = False


# renderer(block_fields, context) -> html, or None when there is nothing to show
BlockRenderer = Callable[[Dict[str, Any], RenderContext], Optional[Markup]]


class RendererRegistry:
    """
    Kind -> renderer map. Built once at startup by tenants.registry and handed
    to the render pipeline; nothing registers into it after that.
    """
    def __init__(self, schema_registry: Optional[BlockSchemaRegistry] = None):
        self.schema_registry = schema_registry
        self._renderers: Dict[str, BlockRenderer] = {}

    def register(self, tenant_code: str, kind: str, renderer: BlockRenderer) -> bool:
        if not kind.startswith(f"{tenant_code}."):
            logger.warning(f"Block type '{kind}' does not match tenant prefix '{tenant_code}.', skipping")
            return False
        self._renderers[kind] = renderer
        return True

    def register_tenant(self, tenant_code: str, renderers: Dict[str, BlockRenderer]) -> int:
        return sum(1 for kind, renderer in renderers.items() if self.register(tenant_code, kind, renderer))

    def resolve(self, kind: str) -> Optional[BlockRenderer]:
        return self._renderers.get(kind)

    def has_renderer(self, kind: str) -> bool:
        return kind in self._renderers

    def is_known(self, kind: str) -> bool:
        if kind in self._renderers:
            return True
        return self.schema_registry is not None and self.schema_registry.is_known(kind)

    def list_known(self) -> Set[str]:
        known = set(self._renderers.keys())
        if self.schema_registry is not None:
            known |= self.schema_registry.list_known()
        return known

    def registered_block_types(self):
        return list(self._renderers.keys())
