"""YAML frontmatter splitting for markdown sources."""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, Tuple

import yaml

_FRONTMATTER_RE = re.compile(r"^---\r?\n(.*?)\r?\n---(?:\r?\n|$)(.*)$", re.DOTALL)


class FrontmatterError(ValueError):
    """Raised when a frontmatter block exists but is not a YAML mapping."""


def split_frontmatter(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """Return `(metadata, body)`; metadata is None when there is no block."""
    match = _FRONTMATTER_RE.match(text or "")
    if match is None:
        return None, text or ""
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise FrontmatterError("invalid YAML frontmatter: {0}".format(exc)) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError("frontmatter must be a mapping")
    return data, match.group(2)
