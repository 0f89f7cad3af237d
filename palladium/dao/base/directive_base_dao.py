"""Abstract base class for directive data access objects (DAOs).

This class establishes the contract every storage backend fulfils for the
directive store, regardless of how the backend enforces expiry (relative TTL
commands vs. absolute instants checked at read time) or how it serializes
concurrent quota updates (server-side scripts vs. local locking).

Responsibilities:
    - Upsert, retrieve and delete Directive records.
    - Enumerate directive ids in lexicographic order with an exclusive cursor.
    - Consume one call of a directive's quota atomically.
    - Standardize error handling across multiple data store implementations.

Example:
    Typical usage with a datastore-specific implementation:

        >>> from palladium.models import Directive
        >>> from palladium.dao.redis import DirectiveRedisDAO

        >>> dao = DirectiveRedisDAO(...)
        >>> dao.put(Directive(id='abc', destination='https://example.com'))

        >>> dao.get('abc').destination
        'https://example.com'

        >>> dao.scan(after=None, limit=10)
        ['abc']
"""

from abc import ABC, abstractmethod
from enum import StrEnum

from palladium.models import Directive


class IncrementResult(StrEnum):
    """Outcome of an atomic conditional increment of a directive's call counter."""

    INCREMENTED = 'incremented'
    EXHAUSTED = 'exhausted'
    NOT_FOUND = 'not_found'


class DirectiveBaseDAO(ABC):
    """Interface for directive data access objects (DAOs).

    Methods:
        put(directive: Directive) -> DirectiveBaseDAO:
            Upsert a directive, replacing any previous record with the same id.

        get(directive_id: str) -> Directive:
            Retrieve a directive. Raises DirectiveNotFoundError if absent or expired.

        delete(directive_id: str) -> None:
            Remove a directive. No-op if it doesn't exist.

        scan(after: str | None, limit: int) -> list[str]:
            Return up to `limit` ids greater than `after`, in lexicographic order.

        clear() -> None:
            Remove every directive.

        increment_calls(directive_id: str, max_calls: int) -> IncrementResult:
            Increment curr_calls only if it is still below max_calls, atomically.

        healthcheck() -> bool:
            Verify the backend is reachable.

    All methods raise DataStoreError (or DataStoreTimeoutError) on backend failures.

    Subclassing:
        Datastore-specific implementations (e.g. DirectiveRedisDAO or
        DirectiveMemoryDAO) must extend this class and implement all
        abstract methods.
    """

    @abstractmethod
    def put(self, directive: Directive) -> 'DirectiveBaseDAO':
        """Upsert a directive

        The directive must carry an id. `directive.acls.expires_at` holds the
        absolute expiry (or None); each backend translates it into its own
        expiry mechanism at write time.

        Args:
            directive (Directive):
                Fully resolved directive to persist.

        Returns:
            DirectiveBaseDAO: self (for method chaining)

        Raises:
            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def get(self, directive_id: str) -> Directive:
        """Retrieve a directive by its id

        Args:
            directive_id (str):
                Identifier of the directive.

        Returns:
            Directive: a copy of the stored directive, with acls.expires_at resolved.

        Raises:
            DirectiveNotFoundError:
                If no directive with the given id exists (or it already expired).

            DataStoreError:
                If there is an error in the data store.
        """
        pass

    @abstractmethod
    def delete(self, directive_id: str) -> None:
        """Delete a directive. Deleting a missing directive is not an error."""
        pass

    @abstractmethod
    def scan(self, after: str | None = None, limit: int = 100) -> list[str]:
        """List directive ids in lexicographic order

        Args:
            after (str | None):
                Exclusive lower bound. None starts from the first id.
            limit (int):
                Maximum number of ids to return.

        Returns:
            list[str]: ids of live directives, sorted.
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Delete every directive. Clearing an empty store is not an error."""
        pass

    @abstractmethod
    def increment_calls(self, directive_id: str, max_calls: int) -> IncrementResult:
        """Consume one call of a directive's quota

        Compare and increment happen as a single atomic step, so at most
        `max_calls` concurrent or sequential callers ever get INCREMENTED.

        Args:
            directive_id (str):
                Identifier of the directive.
            max_calls (int):
                Upper bound for the call counter.

        Returns:
            IncrementResult:
                INCREMENTED if a call was consumed,
                EXHAUSTED if curr_calls already reached max_calls,
                NOT_FOUND if the directive no longer exists.
        """
        pass

    @abstractmethod
    def healthcheck(self) -> bool:
        """Return True if the backend is reachable. Raises DataStoreError otherwise."""
        pass
