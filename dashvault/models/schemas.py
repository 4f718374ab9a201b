"""
Pydantic models for dashboards and database connections.

Stored JSON uses camelCase keys; every model accepts both the alias and the
Python field name.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DbType = Literal["neo4j", "postgresql"]
Dialect = Literal["graph", "relational"]

ClickActionType = Literal[
    "set-parameter",
    "navigate-to-page",
    "set-parameter-and-navigate",
]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# DASHBOARD LAYOUT
# =============================================================================


class GridLayoutItem(_CamelModel):
    """Position of a widget on the dashboard grid."""

    i: str = Field(description="Id of the widget this cell holds")
    x: int
    y: int
    w: int
    h: int


class DashboardWidget(_CamelModel):
    """A chart widget backed by a stored query."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    chart_type: str = Field(alias="chartType")
    connection_id: str = Field(alias="connectionId")
    query: str = ""
    params: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None


class DashboardPage(_CamelModel):
    """A single tab of a dashboard."""

    id: str
    title: str
    widgets: List[DashboardWidget] = Field(default_factory=list)
    grid_layout: List[GridLayoutItem] = Field(default_factory=list, alias="gridLayout")


class DashboardLayoutV1(_CamelModel):
    """Legacy single-page layout. Has no version field."""

    widgets: List[DashboardWidget] = Field(default_factory=list)
    grid_layout: List[GridLayoutItem] = Field(default_factory=list, alias="gridLayout")


class DashboardLayoutV2(_CamelModel):
    """Canonical multi-page layout."""

    version: Literal[2] = 2
    pages: List[DashboardPage]


# =============================================================================
# CLICK ACTIONS
# =============================================================================


class ParameterMapping(_CamelModel):
    parameter_name: str = Field(alias="parameterName")
    # Unused for table cell clicks, which carry their own column
    source_field: Optional[str] = Field(default=None, alias="sourceField")


class ClickAction(_CamelModel):
    """Action configured on a widget's `settings.clickAction`."""

    type: ClickActionType
    # Validated only by the action types that use it
    parameter_mapping: Optional[Dict[str, Any]] = Field(
        default=None, alias="parameterMapping"
    )
    target_page_id: Optional[str] = Field(default=None, alias="targetPageId")


class SetParameter(_CamelModel):
    parameter_name: str = Field(alias="parameterName")
    value: Any
    label: str
    source_field: str = Field(alias="sourceField")


class ClickActionResult(_CamelModel):
    """What the dashboard should do after a data point was clicked."""

    set_parameter: Optional[SetParameter] = Field(default=None, alias="setParameter")
    navigate_to_page_id: Optional[str] = Field(default=None, alias="navigateToPageId")


# =============================================================================
# CONNECTIONS
# =============================================================================


class ConnectionCredentials(_CamelModel):
    """Decrypted connection credentials. Only ever held in memory."""

    uri: str
    username: str
    password: str
    database: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"ConnectionCredentials(uri={self.uri!r}, username={self.username!r}, "
            f"password='***', database={self.database!r})"
        )

    __str__ = __repr__


class ConnectionRecord(_CamelModel):
    """Stored connection. `config_encrypted` is an opaque credential envelope."""

    id: str
    user_id: str = Field(alias="userId")
    name: str
    type: DbType
    config_encrypted: str = Field(alias="configEncrypted")


class QueryResult(_CamelModel):
    """Rows returned by a query executor, tagged with a stable result id."""

    result_id: str = Field(alias="resultId")
    data: Any = None
    fields: Any = None
    preview: bool = False
