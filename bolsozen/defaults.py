"""Loader for the pre-built Brazilian category groups and goals."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .goals import normalize_goal_type
from .icons import resolve_icon
from .models import CATEGORY_TYPES, UnknownCategoryTypeError

DEFAULTS_PATH = Path(__file__).parent / 'default_categories.json'


def load_defaults(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and validate the default category file.

    Args:
        path: Optional alternative JSON file

    Returns:
        Dictionary with ``category_groups``, ``goals`` and ``category_colors``

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file is invalid JSON
        UnknownCategoryTypeError: If a category has an unknown type
        UnknownGoalTypeError: If a goal has an unknown type
    """
    target = path or DEFAULTS_PATH
    if not target.exists():
        raise FileNotFoundError(f"Defaults file not found: {target}")

    with open(target, 'r', encoding='utf-8') as f:
        data = json.load(f)

    for group in data.get('category_groups', []):
        for category in group.get('categories', []):
            if category.get('type') not in CATEGORY_TYPES:
                raise UnknownCategoryTypeError(
                    f"Category {category.get('name')!r} has unknown type {category.get('type')!r}"
                )
            category['icon'] = resolve_icon(category.get('icon'))
    for goal in data.get('goals', []):
        goal['type'] = normalize_goal_type(goal.get('type', ''))
    return data


def get_default_category_groups(path: Optional[Path] = None) -> List[Dict[str, Any]]:
    return load_defaults(path).get('category_groups', [])


def get_default_goals(path: Optional[Path] = None) -> List[Dict[str, Any]]:
    return load_defaults(path).get('goals', [])


def get_category_colors(path: Optional[Path] = None) -> List[str]:
    return load_defaults(path).get('category_colors', [])
