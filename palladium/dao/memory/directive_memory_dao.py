"""DirectiveMemoryDAO: dict-backed directive storage for local runs and tests

Unlike Redis, this backend keeps the absolute expiry instant of every record
and enforces it lazily: expired records are treated as missing (and dropped)
whenever an operation touches them. Data is lost on process exit.

Every operation holds a single lock, which is the serialization point for the
call quota check-and-increment. Waiting for the lock is bounded by `timeout`.
"""

import bisect
import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, UTC

from beartype import beartype

from palladium.models import Directive
from palladium.dao.base import DirectiveBaseDAO, IncrementResult
from palladium.dao.exceptions import DirectiveNotFoundError, DataStoreTimeoutError
from palladium.policies import is_expired


logger = logging.getLogger(__name__)


class DirectiveMemoryDAO(DirectiveBaseDAO):
    """In-memory DAO for directives.

    Args:
        timeout (float):
            Seconds to wait for the store lock before raising DataStoreTimeoutError.

    Example:
        >>> dao = DirectiveMemoryDAO()
        >>> dao.put(Directive(id='abc', destination='https://example.com'))
        <DirectiveMemoryDAO>
        >>> dao.scan()
        ['abc']
    """

    def __init__(self, timeout: float = 1.0) -> None:
        self.timeout = timeout
        self._records: dict[str, Directive] = {}
        self._ids: list[str] = []  # sorted
        self._lock = threading.Lock()

    @contextmanager
    def _locked(self, operation: str, directive_id: str | None = None):
        if not self._lock.acquire(timeout=self.timeout):
            raise DataStoreTimeoutError(
                f"In-memory store lock not acquired within {self.timeout}s during '{operation}'.",
                operation=operation,
                directive_id=directive_id,
            )
        try:
            yield
        finally:
            self._lock.release()

    def _live(self, directive_id: str, now: datetime) -> Directive | None:
        # Caller must hold the lock
        directive = self._records.get(directive_id)
        if directive is not None and is_expired(directive.acls.expires_at, now):
            self._remove(directive_id)
            return None
        return directive

    def _remove(self, directive_id: str) -> None:
        # Caller must hold the lock
        if self._records.pop(directive_id, None) is not None:
            self._ids.pop(bisect.bisect_left(self._ids, directive_id))

    @beartype
    def put(self, directive: Directive) -> 'DirectiveMemoryDAO':
        if not directive.id:
            raise ValueError('Directive must carry an id to be stored.')

        with self._locked('put', directive.id):
            if directive.id not in self._records:
                bisect.insort(self._ids, directive.id)
            self._records[directive.id] = directive
        return self

    @beartype
    def get(self, directive_id: str) -> Directive:
        with self._locked('get', directive_id):
            directive = self._live(directive_id, datetime.now(UTC))
        if directive is None:
            raise DirectiveNotFoundError(f"Directive '{directive_id}' not found.")
        return directive

    @beartype
    def delete(self, directive_id: str) -> None:
        with self._locked('delete', directive_id):
            self._remove(directive_id)

    @beartype
    def scan(self, after: str | None = None, limit: int = 100) -> list[str]:
        now = datetime.now(UTC)
        with self._locked('scan'):
            start = 0 if after is None else bisect.bisect_right(self._ids, after)
            candidates = self._ids[start:]
            ids: list[str] = []
            expired: list[str] = []
            for directive_id in candidates:
                if len(ids) >= limit:
                    break
                if is_expired(self._records[directive_id].acls.expires_at, now):
                    expired.append(directive_id)
                else:
                    ids.append(directive_id)
            for directive_id in expired:
                self._remove(directive_id)
        return ids

    def clear(self) -> None:
        with self._locked('clear'):
            self._records.clear()
            self._ids.clear()

    @beartype
    def increment_calls(self, directive_id: str, max_calls: int) -> IncrementResult:
        with self._locked('increment_calls', directive_id):
            directive = self._live(directive_id, datetime.now(UTC))
            if directive is None:
                return IncrementResult.NOT_FOUND
            if directive.acls.curr_calls >= max_calls:
                return IncrementResult.EXHAUSTED
            acls = replace(directive.acls, curr_calls=directive.acls.curr_calls + 1)
            self._records[directive_id] = replace(directive, acls=acls)
        return IncrementResult.INCREMENTED

    def healthcheck(self) -> bool:
        with self._locked('healthcheck'):
            return True
