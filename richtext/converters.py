"""
Pure converters between legacy, plain-string and canonical rich text, plus the
detectors the repair passes rely on. Nothing in here raises: malformed input
degrades to an empty canonical document.
"""
import json
from typing import Any, Dict, List

from .models import (
    empty_document,
    format_from_flags,
    heading_node,
    paragraph_node,
    root_document,
    text_node,
)


MAX_EXTRACT_DEPTH = 5


def is_legacy_format(value: Any) -> bool:
    if not isinstance(value, list) or not value:
        return False
    first = value[0]
    return isinstance(first, dict) and "type" in first and "root" not in first


def is_canonical_format(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    root = value.get("root")
    return isinstance(root, dict) and root.get("type") == "root"


def _legacy_leaves(node: Dict[str, Any]) -> List[Dict[str, Any]]:
    children = node.get("children")
    if not isinstance(children, list):
        return []

    leaves = []
    for child in children:
        if isinstance(child, dict) and "text" in child:
            text = child.get("text") or ""
            if not isinstance(text, str):
                text = str(text)
            leaves.append(text_node(text, format_from_flags(child)))
    return leaves


def convert_legacy_to_canonical(legacy_doc: Any) -> Dict[str, Any]:
    """
    Convert a legacy (root-less) node list to a canonical document.

    Paragraphs and headings are kept, any other node type is dropped. A node
    that ends up without text runs is dropped too.
    """
    if is_canonical_format(legacy_doc):
        return legacy_doc
    if not isinstance(legacy_doc, list):
        return empty_document()

    children = []
    for node in legacy_doc:
        if not isinstance(node, dict):
            continue

        node_type = node.get("type")
        if node_type == "paragraph":
            leaves = _legacy_leaves(node)
            if leaves:
                children.append(paragraph_node(leaves))
        elif node_type == "heading":
            leaves = _legacy_leaves(node)
            if leaves:
                level = node.get("level") or 1
                children.append(heading_node(leaves, level))

    if not children:
        return empty_document()
    return root_document(children)


def convert_plain_text_to_canonical(text: Any) -> Dict[str, Any]:
    if not isinstance(text, str):
        return empty_document()

    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if not lines:
        return empty_document()
    return root_document([paragraph_node([text_node(line)]) for line in lines])


def to_canonical(value: Any) -> Any:
    """
    Coerce whatever is stored in a rich-text field into the canonical shape.
    None stays None (the field is simply unset).
    """
    if value is None:
        return None
    if is_canonical_format(value):
        return value
    if is_legacy_format(value):
        return convert_legacy_to_canonical(value)
    if isinstance(value, str):
        return convert_plain_text_to_canonical(value)
    return empty_document()


def is_structurally_valid(doc: Any) -> bool:
    if not is_canonical_format(doc):
        return False

    children = doc["root"].get("children")
    if not isinstance(children, list):
        return False

    for child in children:
        if not isinstance(child, dict) or not child.get("type"):
            return False
        grandchildren = child.get("children")
        if not isinstance(grandchildren, list):
            return False
        for grandchild in grandchildren:
            if not isinstance(grandchild, dict) or not grandchild.get("type"):
                return False
            if grandchild["type"] == "text" and not isinstance(grandchild.get("text"), str):
                return False
    return True


def has_empty_root(doc: Any) -> bool:
    if not is_canonical_format(doc):
        return False
    children = doc["root"].get("children")
    return isinstance(children, list) and len(children) == 0


def is_stringified_canonical(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    if not candidate.startswith("{"):
        return False
    try:
        return is_canonical_format(json.loads(candidate))
    except (ValueError, TypeError):
        return False


def _looks_serialized(text: str) -> bool:
    candidate = text.strip()
    return candidate.startswith("{") and candidate.endswith("}") and '"root"' in candidate


def _inline_text(node: Dict[str, Any], depth: int) -> str:
    if node.get("type") == "text":
        text = node.get("text")
        if not isinstance(text, str):
            return ""
        if _looks_serialized(text):
            return extract_plain_text(text, depth + 1)
        return text

    children = node.get("children")
    if not isinstance(children, list):
        return ""
    return "".join(_inline_text(child, depth) for child in children if isinstance(child, dict))


def extract_plain_text(value: Any, depth: int = 0) -> str:
    """
    Pull readable text out of a (possibly double-encoded) canonical document.

    Args:
        value: a canonical dict, a JSON string of one, or a plain string.
        depth: current nesting level, capped at MAX_EXTRACT_DEPTH.

    Returns:
        Block texts joined by newlines, or the plain string if it was not JSON.
    """
    if depth > MAX_EXTRACT_DEPTH:
        return ""

    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except (ValueError, TypeError):
            return value.strip()
        if not is_canonical_format(parsed):
            return value.strip()
        return extract_plain_text(parsed, depth + 1)

    if not is_canonical_format(value):
        return ""

    children = value["root"].get("children")
    if not isinstance(children, list):
        return ""

    lines = [_inline_text(child, depth) for child in children if isinstance(child, dict)]
    return "\n".join(lines).strip()
