"""
Query utilities shared by the Neo4j (Cypher) and PostgreSQL connections.

Handles preview row limiting and stable result identifiers.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any

from dashvault.core.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# DIALECT DEFINITIONS
# =============================================================================

DIALECT_GRAPH = "graph"
DIALECT_RELATIONAL = "relational"

DB_TYPE_NEO4J = "neo4j"
DB_TYPE_POSTGRES = "postgresql"

DB_TYPE_DIALECTS: dict[str, str] = {
    DB_TYPE_NEO4J: DIALECT_GRAPH,
    DB_TYPE_POSTGRES: DIALECT_RELATIONAL,
}

DEFAULT_PREVIEW_LIMIT = 25

# Alias used for the wrapping subquery in relational previews
PREVIEW_ALIAS = "__preview"


# =============================================================================
# LIMIT CLAUSE PATTERNS
# =============================================================================

# Cypher rejects a second LIMIT, so only a trailing one matters
TRAILING_LIMIT_PATTERN = re.compile(r"\bLIMIT\s+\d+\s*$", re.IGNORECASE)


def dialect_for(db_type: str) -> str:
    """
    Resolve the query dialect for a connection type.

    Accepts either a database type ("neo4j", "postgresql") or a dialect name.

    Raises:
        ValueError: If the value is not a known type or dialect.
    """
    if db_type in (DIALECT_GRAPH, DIALECT_RELATIONAL):
        return db_type
    try:
        return DB_TYPE_DIALECTS[db_type]
    except KeyError:
        raise ValueError(f"Unknown database type or dialect: {db_type!r}") from None


def _strip_query(query: str) -> str:
    trimmed = query.strip()
    if trimmed.endswith(";"):
        trimmed = trimmed[:-1].rstrip()
    return trimmed


def ends_with_limit(query: str) -> bool:
    """Check whether a query already ends with a LIMIT <n> clause."""
    return bool(TRAILING_LIMIT_PATTERN.search(_strip_query(query)))


def wrap_with_preview_limit(
    query: str,
    dialect: str,
    limit: int = DEFAULT_PREVIEW_LIMIT,
) -> str:
    """
    Cap the number of rows a query returns, for interactive preview only.

    Relational queries are wrapped in a subquery so any existing ORDER BY or
    LIMIT inside them stays valid. Graph queries get a LIMIT appended unless
    they already end with one.

    This MUST NOT be applied to production dashboard queries.

    Args:
        query: Query text. Surrounding whitespace and one trailing ';' are removed.
        dialect: "graph" or "relational" (or the db type "neo4j"/"postgresql").
        limit: Maximum rows to return.

    Returns:
        The limited query, or "" if the query is empty.
    """
    resolved = dialect_for(dialect)
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValueError(f"Preview limit must be a positive integer, got {limit!r}")

    trimmed = _strip_query(query)
    if not trimmed:
        return trimmed

    if resolved == DIALECT_RELATIONAL:
        return f"SELECT * FROM ({trimmed}) AS {PREVIEW_ALIAS} LIMIT {limit}"

    if TRAILING_LIMIT_PATTERN.search(trimmed):
        logger.debug("Graph query already ends with LIMIT, leaving preview unchanged")
        return trimmed
    return f"{trimmed} LIMIT {limit}"


# =============================================================================
# RESULT IDENTITY
# =============================================================================


def normalize_query_text(query: str) -> str:
    """Trim, collapse whitespace and lowercase so formatting changes hash equal."""
    return re.sub(r"\s+", " ", query.strip()).lower()


def compute_result_id(
    connection_id: str,
    query: str,
    params: dict[str, Any] | None = None,
) -> str:
    """
    Compute a deterministic 16-char hex id for a query result.

    Args:
        connection_id: Id of the connection the query runs against.
        query: Query text (normalized before hashing).
        params: Optional query parameters; key order is significant.

    Returns:
        First 16 hex chars of the SHA-256 digest.
    """
    digest = hashlib.sha256()
    digest.update(connection_id.encode("utf-8"))
    digest.update(b"\x00")
    digest.update(normalize_query_text(query).encode("utf-8"))
    digest.update(b"\x00")
    digest.update(
        json.dumps(params, separators=(",", ":"), ensure_ascii=False, default=str).encode(
            "utf-8"
        )
    )
    return digest.hexdigest()[:16]
