# src/gqltrace/core/ingest/fields.py
"""Field resolution: (type, field name) -> field id, get-or-create.

Field identities are shared by every operation that selects them, so the
same pair is routinely resolved by many traces at once. Lookups for the
distinct pairs of one trace are issued in parallel on a small thread
pool owned by the resolver.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy.exc import IntegrityError

from gqltrace.contracts.errors import IdentityConflictError
from gqltrace.core.ingest.identity import IdentityIndex
from gqltrace.core.logging import get_logger
from gqltrace.core.store.gateway import StorageGateway

logger = get_logger(__name__)

FieldKey = tuple[str, str]


class FieldResolver:
    """Resolves (type, field name) pairs to field ids.

    Keys are kept as tuples end to end, so two different pairs can never
    collapse into one identity.

    Usage:
        resolver = FieldResolver(gateway, index, max_workers=4)
        ids = resolver.ensure_field_ids([("Query", "user"), ("User", "name")])
        ids[("User", "name")]  # -> field id
        resolver.close()
    """

    def __init__(self, gateway: StorageGateway, index: IdentityIndex, *, max_workers: int = 4) -> None:
        self._gateway = gateway
        self._index = index.fields
        self._max_workers = max_workers
        self._pool: ThreadPoolExecutor | None = (
            ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="gqltrace-fields") if max_workers > 1 else None
        )

    def ensure_field_ids(self, pairs: Iterable[FieldKey]) -> dict[FieldKey, int]:
        """Resolve every distinct pair, creating missing fields.

        Returns:
            Mapping from each input pair to its field id, in first-seen order

        Raises:
            SQLAlchemyError: From the first failing lookup, in input order
            IdentityConflictError: If an insert conflicted but no row exists
        """
        distinct = list(dict.fromkeys(pairs))
        if self._pool is None or len(distinct) < 2:
            ids = [self._resolve(pair) for pair in distinct]
        else:
            # map() re-raises the first failure while iterating, in input order
            ids = list(self._pool.map(self._resolve, distinct))
        return dict(zip(distinct, ids, strict=True))

    def _resolve(self, pair: FieldKey) -> int:
        cached = self._index.get(pair)
        if cached is not None:
            return cached

        type_name, field_name = pair
        existing = self._gateway.find_field_id(type_name, field_name)
        if existing is not None:
            return self._index.put(pair, existing)

        try:
            field_id = self._gateway.insert_field(type_name, field_name)
        except IntegrityError as e:
            self._index.record_conflict()
            winner = self._gateway.find_field_id(type_name, field_name)
            if winner is None:
                raise IdentityConflictError("fields", pair) from e
            logger.debug("Lost field insert race", type=type_name, field=field_name, field_id=winner)
            return self._index.put(pair, winner)

        logger.debug("Inserted a new field", type=type_name, field=field_name, field_id=field_id)
        return self._index.put(pair, field_id)

    def close(self) -> None:
        """Shut down the lookup pool. Safe to call more than once."""
        if self._pool is not None:
            self._pool.shutdown(wait=True)
            self._pool = None
