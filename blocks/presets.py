from typing import Any, Dict, List

from richtext.models import empty_document

from .normalizer import CURRENT_SCHEMA_VERSION

PRESET_KINDS = (
    "kallitechnia.hero",
    "kallitechnia.richText",
    "kallitechnia.imageGallery",
    "kallitechnia.cta",
)


def get_block_preset(block_type: str) -> Dict[str, Any]:
    """Pre-filled block with safe defaults, used when an editor adds a new block."""
    base = {"blockType": block_type, "__deprecated": False, "schemaVersion": CURRENT_SCHEMA_VERSION}

    if block_type == "kallitechnia.hero":
        base.update({"title": "", "subtitle": "", "backgroundImage": None, "ctaLabel": "", "ctaUrl": ""})
    elif block_type == "kallitechnia.richText":
        base["content"] = empty_document()
    elif block_type == "kallitechnia.imageGallery":
        base["images"] = []
    elif block_type == "kallitechnia.cta":
        base.update({"title": "", "description": empty_document(), "buttonLabel": "", "buttonUrl": ""})

    return base


def get_tenant_presets(tenant_code: str) -> List[Dict[str, Any]]:
    return [get_block_preset(kind) for kind in PRESET_KINDS if kind.startswith(f"{tenant_code}.")]
