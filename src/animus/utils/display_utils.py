"""
Display mappings shared by every view that shows scan results.
"""

from typing import Optional

from animus.core.constants import (
    COLOR_TEXT_DEFAULT,
    DEFAULT_SCAN_TYPE_ICON,
    SCAN_TYPE_ICONS,
    SCAN_TYPE_NAMES,
    URGENCY_COLORS,
)


def urgency_color(urgency: object, default: str = COLOR_TEXT_DEFAULT) -> str:
    """
    Map an urgency label to its display color.

    Low -> green, Medium -> amber, High -> red, anything else -> ``default``.
    Accepts the Urgency enum or its plain string value.
    """
    key = getattr(urgency, "value", urgency)
    if isinstance(key, str) and key in URGENCY_COLORS:
        return URGENCY_COLORS[key]
    return default


def scan_type_name(scan_type: object, default: str = "Health Analysis") -> str:
    """Human-readable name for a scan type ("skin" -> "Skin Scan")."""
    key = _scan_type_key(scan_type)
    return SCAN_TYPE_NAMES.get(key, default) if key else default


def scan_type_icon(scan_type: object) -> str:
    """Icon name for a scan type."""
    key = _scan_type_key(scan_type)
    return SCAN_TYPE_ICONS.get(key, DEFAULT_SCAN_TYPE_ICON) if key else DEFAULT_SCAN_TYPE_ICON


def format_confidence(confidence: Optional[float]) -> str:
    """Format a 0..1 confidence as a whole percentage ("0.87" -> "87%")."""
    return f"{round((confidence or 0) * 100)}%"


def _scan_type_key(scan_type: object) -> Optional[str]:
    value = getattr(scan_type, "value", scan_type)
    if not isinstance(value, str):
        return None
    return value.strip().lower()
