"""
Collection definitions: access rules plus before-change hooks that enforce the
content invariants (tenant set and immutable, per-tenant uniqueness, one
homepage per tenant) and normalize block lists on every write.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from access.rules import (
    AccessRules,
    form_access,
    media_access,
    relation_id,
    submission_access,
    tenant_access,
    tenant_read_only,
)
from blocks.fields import resolve_block_type
from blocks.normalizer import BlockNormalizer
from blocks.schema import BlockSchemaRegistry
from blocks.validation import BlockValidator, validate_max_length, validate_url
from tenants.registry import build_schema_registry

logger = logging.getLogger(__name__)


class WriteRejected(Exception):
    """A write was refused by access rules or a collection hook."""
    def __init__(self, collection: str, message: str):
        self.collection = collection
        self.message = message
        super().__init__(f"{collection}: {message}")


# hook(store, collection, data, original, operation) -> data
Hook = Callable[[Any, str, Dict[str, Any], Optional[Dict[str, Any]], str], Awaitable[Dict[str, Any]]]


@dataclass
class CollectionConfig:
    slug: str
    access: AccessRules
    tenant_scoped: bool = True
    versions: bool = False
    hooks: List[Hook] = field(default_factory=list)
    # field -> collection it points to, populated when depth > 0
    relationships: Dict[str, str] = field(default_factory=dict)

    async def run_hooks(self, store, data: Dict[str, Any], original: Optional[Dict[str, Any]], operation: str) -> Dict[str, Any]:
        for hook in self.hooks:
            data = await hook(store, self.slug, data, original, operation)
        return data


async def require_tenant(store, collection, data, original, operation):
    if not relation_id(data.get("tenant")):
        raise WriteRejected(collection, "tenant is required")
    return data


async def tenant_immutable(store, collection, data, original, operation):
    if original and relation_id(original.get("tenant")):
        if relation_id(data.get("tenant")) != relation_id(original.get("tenant")):
            raise WriteRejected(collection, "tenant cannot be changed once set")
    return data


def unique_field(name: str, per_tenant: bool = True) -> Hook:
    async def hook(store, collection, data, original, operation):
        value = relation_id(data.get(name))
        if value in (None, ""):
            return data

        where: Dict[str, Any] = {name: {"equals": value}}
        if per_tenant:
            where = {"and": [where, {"tenant": {"equals": relation_id(data.get("tenant"))}}]}
        if original and original.get("id"):
            where = {"and": [where, {"id": {"not_equals": original["id"]}}]}

        existing = await store.find(collection, where=where, limit=1, override_access=True)
        if existing.docs:
            scope = " for this tenant" if per_tenant else ""
            raise WriteRejected(collection, f"{name} '{value}' already exists{scope}")
        return data
    return hook


def allowed_values(name: str, options: List[str], default: Optional[str] = None) -> Hook:
    async def hook(store, collection, data, original, operation):
        if data.get(name) in (None, "") and default is not None:
            data[name] = default
        if data.get(name) not in options:
            raise WriteRejected(collection, f"{name} must be one of {', '.join(options)}")
        return data
    return hook


def url_fields(*names: str) -> Hook:
    async def hook(store, collection, data, original, operation):
        for name in names:
            result = validate_url(data.get(name))
            if result is not True:
                raise WriteRejected(collection, f"{name}: {result}")
        return data
    return hook


async def media_alt_text(store, collection, data, original, operation):
    alt = data.get("alt")
    if not alt or not str(alt).strip():
        raise WriteRejected(collection, "Alt text is required for accessibility")
    result = validate_max_length(200, "Alt text")(alt)
    if result is not True:
        raise WriteRejected(collection, result)
    return data


def normalize_sections(normalizer: BlockNormalizer) -> Hook:
    async def hook(store, collection, data, original, operation):
        if isinstance(data.get("sections"), list):
            data["sections"] = normalizer.normalize_many(data["sections"])
        return data
    return hook


def validate_sections(schema_registry: BlockSchemaRegistry, validator: Optional[BlockValidator] = None) -> Hook:
    """Rejects the write when a block of a registered kind breaks its field validators."""
    validator = validator or BlockValidator()

    async def hook(store, collection, data, original, operation):
        sections = data.get("sections")
        if not isinstance(sections, list):
            return data

        errors = []
        for index, block in enumerate(sections):
            kind = schema_registry.get_kind(resolve_block_type(block))
            if kind is None:
                continue
            errors.extend(f"sections.{index}.{error}" for error in validator.check_fields(block, kind))

        if errors:
            raise WriteRejected(collection, "; ".join(errors))
        return data
    return hook


async def homepage_guardrails(store, collection, data, original, operation):
    sections = data.get("sections")
    if not isinstance(sections, list) or not sections:
        logger.warning("Homepage has no sections. Consider adding at least one hero block.")
        return data

    has_hero = any(
        (resolve_block_type(s) or "").endswith(".hero") or resolve_block_type(s) == "hero"
        for s in sections
    )
    if not has_hero:
        logger.warning("Homepage has no hero block. Consider adding one for better UX.")
    return data


async def page_guardrails(store, collection, data, original, operation):
    sections = data.get("sections")
    if not isinstance(sections, list) or not sections:
        logger.warning(f"Page '{data.get('slug')}' has no sections. The page will be empty.")
    return data


def default_collections(
    normalizer: Optional[BlockNormalizer] = None,
    schema_registry: Optional[BlockSchemaRegistry] = None,
) -> Dict[str, CollectionConfig]:
    normalizer = normalizer or BlockNormalizer()
    if schema_registry is None:
        schema_registry = build_schema_registry()
    section_hooks = [normalize_sections(normalizer), validate_sections(schema_registry)]
    tenant_hooks = [require_tenant, tenant_immutable]
    publication = allowed_values("status", ["draft", "published"], default="draft")

    configs = [
        CollectionConfig("tenants", tenant_read_only, tenant_scoped=False, hooks=[unique_field("code", per_tenant=False)]),
        CollectionConfig(
            "pages", tenant_access, versions=True,
            hooks=tenant_hooks + [unique_field("slug"), publication, page_guardrails] + section_hooks,
            relationships={"tenant": "tenants"},
        ),
        CollectionConfig(
            "homepages", tenant_access, versions=True,
            hooks=tenant_hooks + [unique_field("tenant", per_tenant=False), publication, homepage_guardrails] + section_hooks,
            relationships={"tenant": "tenants"},
        ),
        CollectionConfig(
            "posts", tenant_access, versions=True,
            hooks=tenant_hooks + [unique_field("slug"), publication],
            relationships={"tenant": "tenants", "featuredImage": "media"},
        ),
        CollectionConfig("navigation-menus", tenant_access, hooks=list(tenant_hooks), relationships={"tenant": "tenants"}),
        CollectionConfig(
            "headers", tenant_access,
            hooks=tenant_hooks + [unique_field("tenant", per_tenant=False)],
            relationships={"tenant": "tenants", "navigationMenu": "navigation-menus", "logo": "media"},
        ),
        CollectionConfig(
            "footers", tenant_access,
            hooks=tenant_hooks + [unique_field("tenant", per_tenant=False)],
            relationships={"tenant": "tenants"},
        ),
        CollectionConfig("media", media_access, hooks=tenant_hooks + [media_alt_text], relationships={"tenant": "tenants"}),
        CollectionConfig(
            "forms", form_access,
            hooks=tenant_hooks + [
                unique_field("slug", per_tenant=False),
                allowed_values("status", ["active", "inactive"], default="active"),
                url_fields("redirectUrl"),
            ],
            relationships={"tenant": "tenants"},
        ),
        CollectionConfig("form-submissions", submission_access, relationships={"form": "forms", "tenant": "tenants"}),
    ]
    return {config.slug: config for config in configs}
