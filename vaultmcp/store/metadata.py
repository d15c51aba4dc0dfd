"""
Frontmatter and tag extraction for vault notes.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import yaml

logger = logging.getLogger("VaultMCP.metadata")

_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
# Inline tags: "#tag", "#nested/tag"; not headings ("# Title") and not URL fragments.
_INLINE_TAG_RE = re.compile(r"(?:(?<=\s)|^)#([A-Za-z0-9_\-/]*[A-Za-z_\-/][A-Za-z0-9_\-/]*)", re.MULTILINE)
_CODE_FENCE_RE = re.compile(r"```.*?```", re.DOTALL)


@dataclass
class NoteMetadata:
    frontmatter: Dict[str, Any] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)


def split_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """Return (frontmatter mapping, body). Malformed YAML yields an empty mapping."""
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        logger.debug("Ignoring malformed frontmatter: %s", exc)
        return {}, content[match.end():]
    if not isinstance(data, dict):
        return {}, content[match.end():]
    return data, content[match.end():]


def _normalize_tags(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        items = [part for part in re.split(r"[,\s]+", raw) if part]
    elif isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw if item]
    else:
        items = [str(raw)]
    return [item.lstrip("#") for item in items if item.lstrip("#")]


def extract_metadata(content: str) -> NoteMetadata:
    """
    Frontmatter plus the de-duplicated tag list (frontmatter tags first, then
    inline tags in order of appearance).
    """
    frontmatter, body = split_frontmatter(content)
    tags: List[str] = []
    seen = set()
    inline = _INLINE_TAG_RE.findall(_CODE_FENCE_RE.sub("", body))
    for tag in _normalize_tags(frontmatter.get("tags")) + inline:
        if tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return NoteMetadata(frontmatter=frontmatter, tags=tags)
