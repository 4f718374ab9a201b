"""Dashboard and connection models."""

from .schemas import (
    ClickAction,
    ClickActionResult,
    ConnectionCredentials,
    ConnectionRecord,
    DashboardLayoutV1,
    DashboardLayoutV2,
    DashboardPage,
    DashboardWidget,
    DbType,
    Dialect,
    GridLayoutItem,
    ParameterMapping,
    QueryResult,
    SetParameter,
)

__all__ = [
    "ClickAction",
    "ClickActionResult",
    "ConnectionCredentials",
    "ConnectionRecord",
    "DashboardLayoutV1",
    "DashboardLayoutV2",
    "DashboardPage",
    "DashboardWidget",
    "DbType",
    "Dialect",
    "GridLayoutItem",
    "ParameterMapping",
    "QueryResult",
    "SetParameter",
]
