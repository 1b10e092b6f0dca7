"""
Helpers turning LangChain message content into plain text.
"""

from typing import Any


def _complex_part_to_text(part: dict) -> str:
    part_type = part.get("type")
    if part_type == "text":
        return part.get("text", "")
    if part_type == "image_url":
        image_url = part.get("image_url")
        if isinstance(image_url, dict):
            image_url = image_url.get("url")
        return f"[Image: {image_url}]"
    return ""


def content_to_text(content: Any) -> str:
    """
    Converts message content (string or list of content blocks) to text.
    Text blocks are joined with a space; unknown block types are dropped.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, str):
                text = item
            elif isinstance(item, dict):
                text = _complex_part_to_text(item)
            else:
                text = ""
            if text:
                parts.append(text)
        return " ".join(parts)
    return ""


def fragment_text(fragment: Any) -> str:
    """
    Extracts the text of one persisted message fragment.

    Accepts LangChain-serialized messages ({"lc": 1, "kwargs": {"content": ...}}),
    plain {"content": ...} dicts and bare strings.
    """
    if isinstance(fragment, str):
        return fragment
    if not isinstance(fragment, dict):
        return ""
    if isinstance(fragment.get("kwargs"), dict):
        return content_to_text(fragment["kwargs"].get("content"))
    return content_to_text(fragment.get("content"))
