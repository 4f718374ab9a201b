"""
Connection service: opens stored connections and runs queries through an
injected executor.

The executor owns the database drivers. This service only decrypts the
credentials, applies the preview row cap when asked to, and tags results with
a stable id for caching.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional, Protocol

from dashvault.config import settings
from dashvault.core.encryption import CredentialEnvelope, get_envelope
from dashvault.core.logging import get_logger
from dashvault.core.sql_utils import (
    compute_result_id,
    wrap_with_preview_limit,
)
from dashvault.models.schemas import (
    ConnectionCredentials,
    ConnectionRecord,
    DbType,
    QueryResult,
)

logger = get_logger(__name__)


class QueryExecutor(Protocol):
    """Runs queries against a Neo4j or PostgreSQL database."""

    async def execute(
        self,
        db_type: DbType,
        credentials: ConnectionCredentials,
        query: str,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Return {"data": rows, "fields": optional column info}; raise on failure."""
        ...

    async def check(self, db_type: DbType, credentials: ConnectionCredentials) -> bool:
        ...


class ConnectionService:
    """Bridges encrypted connection records and a query executor."""

    def __init__(
        self,
        executor: QueryExecutor,
        envelope: Optional[CredentialEnvelope] = None,
        preview_limit: Optional[int] = None,
    ):
        self._executor = executor
        self._envelope = envelope
        self._preview_limit = preview_limit

    @property
    def envelope(self) -> CredentialEnvelope:
        # Fall back to ENCRYPTION_KEY, read at first use
        if self._envelope is None:
            self._envelope = get_envelope()
        return self._envelope

    @property
    def preview_limit(self) -> int:
        if self._preview_limit is None:
            return settings.preview_row_limit
        return self._preview_limit

    def create_record(
        self,
        user_id: str,
        name: str,
        db_type: DbType,
        credentials: ConnectionCredentials,
    ) -> ConnectionRecord:
        """Build a new connection record with encrypted credentials."""
        record = ConnectionRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            type=db_type,
            config_encrypted=self.envelope.encrypt_credentials(credentials),
        )
        logger.info(f"Created {db_type} connection '{name}' ({record.id})")
        return record

    def open_credentials(self, record: ConnectionRecord) -> ConnectionCredentials:
        """
        Decrypt the credentials of a stored connection.

        Raises:
            DecryptionError: If the envelope fails authentication.
            CredentialParseError: If the plaintext is not a credential object.
        """
        try:
            return self.envelope.decrypt_credentials(record.config_encrypted)
        except ValueError:
            logger.error(f"Could not open credentials for connection {record.id}")
            raise

    async def run_query(
        self,
        record: ConnectionRecord,
        query: str,
        params: Optional[dict[str, Any]] = None,
        preview: bool = False,
    ) -> QueryResult:
        """
        Execute a query against a stored connection.

        Args:
            record: Connection to run against.
            query: Query text as stored on the widget or typed in the editor.
            params: Optional query parameters.
            preview: Cap the row count for interactive preview. Dashboard
                execution must leave this False.

        Returns:
            QueryResult with rows and a result id derived from the original query.
        """
        credentials = self.open_credentials(record)

        to_run = query
        if preview:
            to_run = wrap_with_preview_limit(query, record.type, self.preview_limit)
            if not to_run:
                raise ValueError("Cannot preview an empty query")

        logger.debug(f"Running {record.type} query on {record.id}: {to_run[:200]}")
        try:
            response = await self._executor.execute(record.type, credentials, to_run, params)
        except Exception:
            logger.exception(f"Query FAILED on connection {record.id}")
            raise

        return QueryResult(
            result_id=compute_result_id(record.id, query, params),
            data=response.get("data"),
            fields=response.get("fields"),
            preview=preview,
        )

    async def test_connection(self, record: ConnectionRecord) -> bool:
        """Check that a stored connection can be reached with its credentials."""
        credentials = self.open_credentials(record)
        ok = await self._executor.check(record.type, credentials)
        if ok:
            logger.info(f"Connection {record.id} is reachable")
        else:
            logger.warning(f"Connection {record.id} check failed")
        return ok
