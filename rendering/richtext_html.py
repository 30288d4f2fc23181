from typing import Any, Dict, List, Optional

from markupsafe import Markup, escape

from richtext.models import TextFormat

from .sanitize import safe_rich_text, safe_url

# Applied innermost first
FORMAT_TAGS = (
    (TextFormat.BOLD, "strong"),
    (TextFormat.ITALIC, "em"),
    (TextFormat.UNDERLINE, "u"),
    (TextFormat.STRIKETHROUGH, "del"),
    (TextFormat.CODE, "code"),
)


def _render_text(node: Dict[str, Any]) -> Optional[Markup]:
    text = node.get("text")
    if not isinstance(text, str) or not text:
        return None

    html = escape(text)
    fmt = node.get("format")
    if isinstance(fmt, int) and not isinstance(fmt, bool):
        for bit, tag in FORMAT_TAGS:
            if fmt & bit:
                html = Markup(f"<{tag}>") + html + Markup(f"</{tag}>")
    return html


def _heading_tag(node: Dict[str, Any]) -> str:
    tag = node.get("tag") or node.get("level") or 1
    level = str(tag).lstrip("h")
    try:
        number = int(level)
    except ValueError:
        number = 1
    return f"h{min(max(number, 1), 6)}"


def render_node(node: Any) -> Optional[Markup]:
    if not isinstance(node, dict):
        return None

    if node.get("type") == "text" or "text" in node:
        return _render_text(node)
    if node.get("type") == "linebreak":
        return Markup("<br>")

    children = node.get("children")
    if not isinstance(children, list):
        return None

    rendered = [html for html in (render_node(child) for child in children) if html]
    if not rendered:
        return None
    inner = Markup("").join(rendered)

    node_type = node.get("type")
    if node_type == "paragraph":
        return Markup("<p>") + inner + Markup("</p>")
    if node_type == "heading":
        tag = _heading_tag(node)
        return Markup(f"<{tag}>") + inner + Markup(f"</{tag}>")
    if node_type == "list":
        tag = "ol" if node.get("listType") == "number" else "ul"
        return Markup(f"<{tag}>") + inner + Markup(f"</{tag}>")
    if node_type == "listitem":
        return Markup("<li>") + inner + Markup("</li>")
    if node_type == "quote":
        return Markup("<blockquote>") + inner + Markup("</blockquote>")
    if node_type == "link":
        fields = node.get("fields") if isinstance(node.get("fields"), dict) else {}
        url = safe_url(node.get("url") or node.get("href") or fields.get("url"))
        if url:
            return Markup('<a href="{}">').format(url) + inner + Markup("</a>")
        return inner
    return Markup("<div>") + inner + Markup("</div>")


def render_rich_text(value: Any) -> Optional[Markup]:
    """HTML for a stored rich-text value, or None when there is nothing to show."""
    doc = safe_rich_text(value)
    children = doc["root"].get("children")
    if not isinstance(children, list):
        return None

    blocks: List[Markup] = [html for html in (render_node(child) for child in children) if html]
    if not blocks:
        return None
    return Markup("").join(blocks)
