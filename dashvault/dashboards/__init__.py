"""Dashboard layout handling."""

from .layout import (
    collect_parameter_names,
    is_v2_layout,
    migrate_layout,
    parse_layout,
    resolve_click_action,
)

__all__ = [
    "collect_parameter_names",
    "is_v2_layout",
    "migrate_layout",
    "parse_layout",
    "resolve_click_action",
]
