"""
Startup wiring: discovers tenant packages under tenants/ and builds the schema
and renderer registries once. A tenant package provides `blocks.py` (with
TENANT_CODE and BLOCKS) and optionally `renderers.py` (with RENDERERS).
"""
import importlib
import logging
from pathlib import Path
from typing import List, Optional, Tuple

from blocks.schema import BlockSchemaRegistry
from rendering.registry import RendererRegistry

logger = logging.getLogger(__name__)

TENANTS_DIR = Path(__file__).parent


def discover_tenant_codes(base_dir: Path = TENANTS_DIR) -> List[str]:
    codes = []
    for path in sorted(base_dir.iterdir()):
        if path.is_dir() and (path / "blocks.py").exists():
            codes.append(path.name)
    return codes


def build_schema_registry(tenant_codes: Optional[List[str]] = None) -> BlockSchemaRegistry:
    registry = BlockSchemaRegistry()
    for code in tenant_codes if tenant_codes is not None else discover_tenant_codes():
        try:
            module = importlib.import_module(f"tenants.{code}.blocks")
        except ImportError as e:
            logger.error(f"Failed to load block kinds for tenant {code}: {e}")
            continue
        registry.register_tenant(getattr(module, "TENANT_CODE", code), getattr(module, "BLOCKS", []))
    return registry


def build_renderer_registry(
    schema_registry: BlockSchemaRegistry,
    tenant_codes: Optional[List[str]] = None,
) -> RendererRegistry:
    registry = RendererRegistry(schema_registry)
    for code in tenant_codes if tenant_codes is not None else schema_registry.tenant_codes():
        try:
            module = importlib.import_module(f"tenants.{code}.renderers")
        except ModuleNotFoundError:
            logger.debug(f"Tenant {code} has no renderers module")
            continue
        count = registry.register_tenant(code, getattr(module, "RENDERERS", {}))
        logger.info(f"Registered {count} renderers for tenant {code}")
    return registry


def build_registries(tenant_codes: Optional[List[str]] = None) -> Tuple[BlockSchemaRegistry, RendererRegistry]:
    schema_registry = build_schema_registry(tenant_codes)
    return schema_registry, build_renderer_registry(schema_registry, tenant_codes)
