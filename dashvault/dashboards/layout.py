"""
Dashboard layout migration and inspection.

Layouts are stored as JSON. Two shapes exist:

    v1 (legacy):  {"widgets": [...], "gridLayout": [...]}
    v2 (current): {"version": 2, "pages": [{"id", "title", "widgets", "gridLayout"}]}

Everything read from storage goes through migrate_layout() before use, so the
rest of the application only ever sees v2.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import ValidationError

from dashvault.core.logging import get_logger
from dashvault.models.schemas import (
    ClickAction,
    ClickActionResult,
    DashboardLayoutV2,
    DashboardWidget,
    ParameterMapping,
    SetParameter,
)

logger = get_logger(__name__)

CURRENT_LAYOUT_VERSION = 2
DEFAULT_PAGE_ID = "page-1"
DEFAULT_PAGE_TITLE = "Page 1"

PARAM_PATTERN = re.compile(r"\$param_(\w+)", re.ASCII)
PARAMETER_SELECT_CHART = "parameter-select"


def _default_page(widgets: list | None = None, grid_layout: list | None = None) -> dict:
    return {
        "id": DEFAULT_PAGE_ID,
        "title": DEFAULT_PAGE_TITLE,
        "widgets": widgets if widgets is not None else [],
        "gridLayout": grid_layout if grid_layout is not None else [],
    }


def is_v2_layout(raw: Any) -> bool:
    """Check whether a stored layout already has the current shape."""
    return (
        isinstance(raw, Mapping)
        and raw.get("version") == CURRENT_LAYOUT_VERSION
        and isinstance(raw.get("pages"), list)
    )


def migrate_layout(raw: Any) -> dict:
    """
    Normalize any stored layout (v1 or v2) to the v2 format.

    - None -> one empty default page
    - v2 -> returned as-is (same object)
    - anything else -> treated as v1 and wrapped in a single default page,
      reusing its widget and grid lists

    Never raises: a missing layout is the normal state of a new dashboard.

    Args:
        raw: Layout JSON as loaded from storage.

    Returns:
        Layout dict in v2 format.
    """
    if raw is None:
        return {"version": CURRENT_LAYOUT_VERSION, "pages": [_default_page()]}

    if is_v2_layout(raw):
        return raw

    if not isinstance(raw, Mapping):
        logger.warning(
            f"Layout has unexpected type {type(raw).__name__}, using an empty page"
        )
        return {"version": CURRENT_LAYOUT_VERSION, "pages": [_default_page()]}

    if "version" in raw:
        # Versioned but not a valid v2 layout; upgrade as legacy and flag it
        logger.warning(
            f"Layout declares version {raw.get('version')!r} without a valid pages "
            "list, treating it as a legacy layout"
        )

    return {
        "version": CURRENT_LAYOUT_VERSION,
        "pages": [_default_page(raw.get("widgets"), raw.get("gridLayout"))],
    }


def parse_layout(raw: Any) -> DashboardLayoutV2:
    """
    Migrate and validate a stored layout into a typed v2 model.

    Raises:
        pydantic.ValidationError: If pages or widgets are malformed.
    """
    return DashboardLayoutV2.model_validate(migrate_layout(raw))


def collect_parameter_names(layout: DashboardLayoutV2) -> list[str]:
    """
    Find every dashboard parameter referenced by a layout.

    Sources:
        1. Click action parameterMapping.parameterName
        2. $param_<name> references in widget queries
        3. parameterName in chartOptions of parameter-select widgets

    Returns:
        Sorted, deduplicated parameter names.
    """
    names: set[str] = set()

    for page in layout.pages:
        for widget in page.widgets:
            widget_settings = widget.settings or {}

            click_action = widget_settings.get("clickAction")
            if isinstance(click_action, Mapping):
                mapping = click_action.get("parameterMapping")
                if isinstance(mapping, Mapping):
                    parameter_name = mapping.get("parameterName")
                    if isinstance(parameter_name, str) and parameter_name:
                        names.add(parameter_name)

            if widget.query:
                names.update(PARAM_PATTERN.findall(widget.query))

            if widget.chart_type == PARAMETER_SELECT_CHART:
                options = widget_settings.get("chartOptions")
                if isinstance(options, Mapping):
                    parameter_name = options.get("parameterName")
                    if isinstance(parameter_name, str) and parameter_name:
                        names.add(parameter_name)

    return sorted(names)


def resolve_click_action(
    widget: DashboardWidget,
    point: Mapping[str, Any],
) -> Optional[ClickActionResult]:
    """
    Resolve what a click on a data point should do.

    Args:
        widget: Widget that was clicked.
        point: Clicked data point. Table cell clicks carry "_clickedValue"
            and "_clickedColumn" instead of a full row.

    Returns:
        The action to perform, or None if nothing should happen.
    """
    widget_settings = widget.settings or {}
    raw_action = widget_settings.get("clickAction")
    if not raw_action:
        return None

    try:
        action = ClickAction.model_validate(raw_action)
    except ValidationError:
        logger.warning(f"Widget {widget.id} has an unrecognized click action, ignoring it")
        return None

    result = ClickActionResult()

    if action.type in ("set-parameter", "set-parameter-and-navigate"):
        if action.parameter_mapping is None:
            return None
        try:
            mapping = ParameterMapping.model_validate(action.parameter_mapping)
        except ValidationError:
            logger.warning(f"Widget {widget.id} has an invalid parameter mapping, ignoring it")
            return None

        if "_clickedValue" in point:
            value = point["_clickedValue"]
            source_field = point.get("_clickedColumn")
        else:
            if mapping.source_field is None or mapping.source_field not in point:
                return None
            value = point[mapping.source_field]
            source_field = mapping.source_field

        # Settings and clicked points are free-form JSON
        label = widget_settings.get("title") or widget.chart_type
        result.set_parameter = SetParameter(
            parameter_name=mapping.parameter_name,
            value=value,
            label=str(label),
            source_field="" if source_field is None else str(source_field),
        )

    if action.type in ("navigate-to-page", "set-parameter-and-navigate"):
        if not action.target_page_id:
            return None
        result.navigate_to_page_id = action.target_page_id

    if result.set_parameter is None and result.navigate_to_page_id is None:
        return None
    return result
