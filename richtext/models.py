"""
Canonical rich-text document shape (root -> block nodes -> text runs) and the
legacy flat-array shape it replaced.
"""
from enum import IntFlag
from typing import Dict, Any, List, Optional


class TextFormat(IntFlag):
    BOLD = 1
    ITALIC = 2
    UNDERLINE = 4
    STRIKETHROUGH = 8
    CODE = 16


# Legacy leaf flag -> canonical format bit
LEGACY_FORMAT_FLAGS = {
    "bold": TextFormat.BOLD,
    "italic": TextFormat.ITALIC,
    "underline": TextFormat.UNDERLINE,
    "strikethrough": TextFormat.STRIKETHROUGH,
    "code": TextFormat.CODE,
}

BLOCK_NODE_TYPES = ("paragraph", "heading", "list", "listitem", "quote")


def text_node(text: str, fmt: int = 0) -> Dict[str, Any]:
    return {
        "detail": 0,
        "format": int(fmt),
        "mode": "normal",
        "style": "",
        "text": text,
        "type": "text",
        "version": 1,
    }


def paragraph_node(children: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "children": children if children is not None else [],
        "direction": "ltr",
        "format": "",
        "indent": 0,
        "type": "paragraph",
        "version": 1,
    }


def heading_node(children: List[Dict[str, Any]], level: int = 1) -> Dict[str, Any]:
    node = paragraph_node(children)
    node["type"] = "heading"
    node["tag"] = f"h{level}"
    return node


def root_document(children: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {
        "root": {
            "children": children,
            "direction": "ltr",
            "format": "",
            "indent": 0,
            "type": "root",
            "version": 1,
        }
    }


def empty_document() -> Dict[str, Any]:
    """
    The one empty form used everywhere: a root holding a single empty paragraph.
    Returns a fresh structure on each call so callers may mutate it.
    """
    return root_document([paragraph_node()])


def format_from_flags(leaf: Dict[str, Any]) -> int:
    fmt = 0
    for flag, bit in LEGACY_FORMAT_FLAGS.items():
        if leaf.get(flag):
            fmt |= bit
    return fmt
