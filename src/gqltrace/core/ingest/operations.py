# src/gqltrace/core/ingest/operations.py
"""Operation resolution: signature -> operation id, get-or-create."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from gqltrace.contracts.errors import IdentityConflictError
from gqltrace.core.ingest.identity import IdentityIndex
from gqltrace.core.logging import get_logger
from gqltrace.core.signature import operation_signature
from gqltrace.core.store.gateway import StorageGateway

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedOperation:
    """Outcome of resolving one operation.

    is_new is True only for the call whose insert created the row. Field
    linking keys off it, so exactly one writer links a new operation.
    """

    operation_id: int
    is_new: bool
    signature: str


class OperationResolver:
    """Resolves operations to ids, creating them on first sighting.

    Lookup order is identity index, then store, then insert. An insert
    that loses a race on the signature unique constraint fetches the
    winning row instead and reports is_new=False.
    """

    def __init__(self, gateway: StorageGateway, index: IdentityIndex) -> None:
        self._gateway = gateway
        self._index = index.operations

    def resolve(self, query: str | None, operation_name: str | None) -> ResolvedOperation:
        """Compute the signature and resolve it.

        Raises:
            MalformedTraceError: If query or operation name is missing or unusable
        """
        signature = operation_signature(query, operation_name)
        # operation_signature rejects None for both
        assert query is not None and operation_name is not None
        return self.resolve_signature(signature, query=query, operation_name=operation_name)

    def resolve_signature(self, signature: str, *, query: str, operation_name: str) -> ResolvedOperation:
        """Resolve an already computed signature to an operation id.

        Args:
            signature: Operation signature (see gqltrace.core.signature)
            query: Raw query text, stored only if the operation is new
            operation_name: Operation name, stored only if the operation is new

        Raises:
            IdentityConflictError: If the insert conflicted but no row exists
        """
        cached = self._index.get(signature)
        if cached is not None:
            return ResolvedOperation(operation_id=cached, is_new=False, signature=signature)

        existing = self._gateway.find_operation_id(signature)
        if existing is not None:
            logger.debug("Operation already exists", signature=signature, operation_id=existing)
            return ResolvedOperation(operation_id=self._index.put(signature, existing), is_new=False, signature=signature)

        try:
            operation_id = self._gateway.insert_operation(operation=query, name=operation_name, signature=signature)
        except IntegrityError as e:
            # Another writer inserted the same signature between our lookup and insert
            self._index.record_conflict()
            winner = self._gateway.find_operation_id(signature)
            if winner is None:
                raise IdentityConflictError("operations", signature) from e
            logger.debug("Lost operation insert race", signature=signature, operation_id=winner)
            return ResolvedOperation(operation_id=self._index.put(signature, winner), is_new=False, signature=signature)

        logger.debug("Created a new operation", signature=signature, operation_id=operation_id, name=operation_name)
        return ResolvedOperation(operation_id=self._index.put(signature, operation_id), is_new=True, signature=signature)
