"""Detect whether a page offers the target for purchase."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Optional

_ATTRIBUTE_PATTERN = re.compile(r"""([^\s=/>]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s>]+))?""")
# quoted values are consumed whole so a ">" inside them does not end the tag
_START_TAG_PATTERN = re.compile(r"""<[a-zA-Z](?:"[^"]*"|'[^']*'|[^'">])*>""")


@dataclass(frozen=True)
class MarkerInspection:
    found: bool
    disabled: bool
    reason: str

    @property
    def available(self) -> bool:
        return self.found and not self.disabled


def _find_tag(html: str, marker_id: str) -> Optional[str]:
    for match in _START_TAG_PATTERN.finditer(html):
        tag = match.group(0)
        if marker_id in tag and _parse_attributes(tag).get("id") == marker_id:
            return tag
    return None


def _parse_attributes(tag: str) -> Dict[str, Optional[str]]:
    body = tag[1:-1].rstrip("/")
    parts = body.split(None, 1)
    attributes: Dict[str, Optional[str]] = {}
    if len(parts) < 2:
        return attributes
    for name, raw_value in _ATTRIBUTE_PATTERN.findall(parts[1]):
        value: Optional[str] = raw_value.strip("\"'") if raw_value else None
        attributes[name.lower()] = value
    return attributes


def inspect_marker(html: str, marker_id: str) -> MarkerInspection:
    """
    Find the element with ``id=marker_id`` and decide whether it is enabled.

    Args:
        html: Page body
        marker_id: DOM id of the purchase control

    Returns:
        MarkerInspection describing presence and disabled state
    """
    tag = _find_tag(html, marker_id)
    if tag is None:
        return MarkerInspection(found=False, disabled=False, reason=f"#{marker_id} not present")

    attributes = _parse_attributes(tag)
    if "disabled" in attributes:
        return MarkerInspection(found=True, disabled=True, reason=f"#{marker_id} has disabled attribute")
    classes = (attributes.get("class") or "").split()
    if "disabled" in classes:
        return MarkerInspection(found=True, disabled=True, reason=f"#{marker_id} has disabled class")
    if (attributes.get("aria-disabled") or "").lower() == "true":
        return MarkerInspection(found=True, disabled=True, reason=f"#{marker_id} is aria-disabled")
    return MarkerInspection(found=True, disabled=False, reason=f"#{marker_id} enabled")
