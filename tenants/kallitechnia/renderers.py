"""
HTML renderers for the kallitechnia blocks that have a frontend component.
Every field is read through rendering.sanitize.
"""
from pathlib import Path
from typing import Any, Dict, Optional

from markupsafe import Markup

from rendering.fallbacks import missing_image
from rendering.registry import RenderContext
from rendering.richtext_html import render_rich_text
from rendering.sanitize import safe_array, safe_media, safe_text, safe_url
from rendering.templates import render_template

from .blocks import TENANT_CODE

TEMPLATE_DIR = str(Path(__file__).parent / "templates")


def render_hero(block: Dict[str, Any], context: RenderContext) -> Optional[Markup]:
    title = safe_text(block.get("title"))
    subtitle = safe_text(block.get("subtitle"))
    cta_label = safe_text(block.get("ctaLabel"))
    cta_url = safe_url(block.get("ctaUrl"))
    background = safe_media(block.get("backgroundImage"))

    if not (title or subtitle or (cta_label and cta_url) or (background and background.url)):
        return None

    return render_template(
        "hero.html",
        TEMPLATE_DIR,
        title=title,
        subtitle=subtitle,
        cta_label=cta_label,
        cta_url=cta_url,
        background=background,
    )


def render_rich_text_block(block: Dict[str, Any], context: RenderContext) -> Optional[Markup]:
    body = render_rich_text(block.get("content"))
    if not body:
        return None

    return render_template(
        "rich_text.html",
        TEMPLATE_DIR,
        title=safe_text(block.get("title")),
        subtitle=safe_text(block.get("subtitle")),
        body=body,
    )


def render_image_gallery(block: Dict[str, Any], context: RenderContext) -> Optional[Markup]:
    items = []
    for item in safe_array(block.get("images")):
        source = item.get("image") if isinstance(item, dict) and "image" in item else item
        image = safe_media(source)
        if image is None:
            continue
        caption = safe_text(item.get("caption")) if isinstance(item, dict) else ""
        items.append({
            "image": image,
            "caption": caption,
            "fallback": missing_image(caption or "Gallery image"),
        })

    if not items:
        return None
    return render_template("image_gallery.html", TEMPLATE_DIR, items=items)


def render_cta(block: Dict[str, Any], context: RenderContext) -> Optional[Markup]:
    title = safe_text(block.get("title"))
    button_label = safe_text(block.get("buttonLabel"))

    raw_description = block.get("description")
    if isinstance(raw_description, (dict, list)):
        description = render_rich_text(raw_description)
    else:
        description = safe_text(raw_description)

    if not (title or description or button_label):
        return None

    return render_template(
        "cta.html",
        TEMPLATE_DIR,
        title=title,
        description=description,
        button_label=button_label,
        button_url=safe_url(block.get("buttonUrl")),
    )


RENDERERS = {
    f"{TENANT_CODE}.hero": render_hero,
    f"{TENANT_CODE}.richText": render_rich_text_block,
    f"{TENANT_CODE}.imageGallery": render_image_gallery,
    f"{TENANT_CODE}.cta": render_cta,
}
