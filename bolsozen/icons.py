"""Category icon keys.

Categories store a free-form icon key.  Several aliases point at the same
icon; anything unknown resolves to the default ``package`` icon instead of
leaving the row without one.
"""

from __future__ import annotations

from typing import Dict, Optional

DEFAULT_ICON = 'package'

# canonical icon -> emoji used by the Streamlit tables
ICON_GLYPHS: Dict[str, str] = {
    'home': '🏠',
    'zap': '⚡',
    'tv': '📺',
    'shield': '🛡️',
    'graduation-cap': '🎓',
    'dumbbell': '🏋️',
    'shopping-cart': '🛒',
    'car': '🚗',
    'coffee': '☕',
    'phone': '📱',
    'heart': '❤️',
    'music': '🎵',
    'gamepad': '🎮',
    'package': '📦',
    'dollar-sign': '💲',
    'building': '🏢',
    'bus': '🚌',
    'pill': '💊',
    'utensils': '🍽️',
    'plane': '✈️',
    'shirt': '👕',
    'smartphone': '📲',
    'play': '▶️',
}

ICON_ALIASES: Dict[str, str] = {
    'house': 'home',
    'mortgage': 'home',
    'lightning': 'zap',
    'utilities': 'zap',
    'television': 'tv',
    'internet': 'tv',
    'insurance': 'shield',
    'student': 'graduation-cap',
    'fitness': 'dumbbell',
    'groceries': 'shopping-cart',
    'transport': 'car',
    'food': 'coffee',
    'mobile': 'phone',
    'health': 'heart',
    'entertainment': 'music',
    'games': 'gamepad',
    'shopping': 'package',
    'money': 'dollar-sign',
}


def _validate_tables() -> None:
    missing = {alias: target for alias, target in ICON_ALIASES.items() if target not in ICON_GLYPHS}
    if missing:
        raise ValueError(f"Icon aliases point at unknown icons: {missing}")
    if DEFAULT_ICON not in ICON_GLYPHS:
        raise ValueError(f"Default icon {DEFAULT_ICON!r} has no glyph")


_validate_tables()


def resolve_icon(key: Optional[str]) -> str:
    """Canonical icon key for ``key``; ``DEFAULT_ICON`` when unknown."""
    normalized = (key or '').strip().lower()
    if normalized in ICON_GLYPHS:
        return normalized
    return ICON_ALIASES.get(normalized, DEFAULT_ICON)


def icon_glyph(key: Optional[str]) -> str:
    return ICON_GLYPHS[resolve_icon(key)]
