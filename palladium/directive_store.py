"""Directive store: lifecycle and redirect semantics of directives

The store is backend-agnostic. It is given a DAO (Redis, in-memory, ...) and
owns everything that isn't storage:
    - identifier claiming;
    - validation of client input before anything is written;
    - expiry resolution (through the expiry policy);
    - quota reset on every write;
    - access policy evaluation and quota consumption on redirect.

Classes:
    DirectiveStore:
        Aggregate root invoked by the Lambda handlers.

Example:
    >>> from palladium.dao.memory import DirectiveMemoryDAO
    >>> from palladium.models import Directive, DirectiveACLs
    >>> store = DirectiveStore(DirectiveMemoryDAO())
    >>> directive_id = store.register(Directive(destination='https://example.com', acls=DirectiveACLs(max_calls=1)))
    >>> store.redirect(directive_id)
    'https://example.com'
    >>> store.redirect(directive_id)
    Traceback (most recent call last):
        ...
    palladium.exceptions.DirectiveExhaustedError: Directive '...' has no calls left.
"""

import uuid
import logging
from dataclasses import replace
from datetime import datetime, UTC
from urllib.parse import urlsplit

from palladium.constants import Paging
from palladium.models import Directive, DirectiveAuth
from palladium.dao.base import DirectiveBaseDAO, IncrementResult
from palladium.dao.exceptions import DirectiveNotFoundError
from palladium.exceptions import ValidationError, DirectiveUnauthorizedError, DirectiveExhaustedError
from palladium.policies import AccessDecision, evaluate, counts_calls, resolve_expiry


logger = logging.getLogger(__name__)


class DirectiveStore:
    """Create, read, list, delete and follow directives on top of a DAO

    Attributes:
        dao (DirectiveBaseDAO):
            Storage backend. Shared between concurrent callers; the store keeps
            no other mutable state.
        max_page_size (int):
            Upper bound accepted by list().
    """

    def __init__(self, dao: DirectiveBaseDAO, max_page_size: int = Paging.MAX_PAGE_SIZE):
        self.dao = dao
        self.max_page_size = max_page_size

    def claim_id(self) -> str:
        """Generate a fresh directive id (UUID v4) without persisting anything."""
        return str(uuid.uuid4())

    def register(self, directive: Directive) -> str:
        """Persist a directive, overwriting any directive with the same id

        The call counter is always reset to 0: replaying a register with the
        same id and payload converges to the same record, quota usage included.

        Args:
            directive (Directive):
                Directive built from client input. Without an id, one is generated.

        Returns:
            str: id of the stored directive.

        Raises:
            ValidationError:
                If the id, destination, max_calls or auth are invalid.
            InvalidExpiryFormatError:
                If the expiry can't be resolved.
            DataStoreError:
                If the backend fails.
        """
        self._validate(directive)

        directive_id = directive.id if directive.id is not None else self.claim_id()
        expires_at = resolve_expiry(directive.acls.expiry, datetime.now(UTC))
        record = replace(
            directive,
            id=directive_id,
            acls=replace(directive.acls, curr_calls=0, expires_at=expires_at),
        )

        self.dao.put(record)
        logger.debug(
            'Registered directive.',
            extra={'directive_id': directive_id, 'expires_at': expires_at.isoformat() if expires_at else None},
        )
        return directive_id

    def read(self, directive_id: str) -> Directive:
        """Look up a directive without checking or mutating its ACLs

        Raises:
            DirectiveNotFoundError:
                If the directive doesn't exist or already expired.
        """
        return self.dao.get(directive_id)

    def list(self, page_size: int = Paging.DEFAULT_PAGE_SIZE, cursor: str | None = None) -> tuple[list[str], str | None]:
        """Page through directive ids in lexicographic order

        Args:
            page_size (int):
                Maximum number of ids to return, between 1 and max_page_size.
            cursor (str | None):
                Exclusive lower bound, usually the next_cursor of the previous page.

        Returns:
            tuple[list[str], str | None]:
                (ids, next_cursor). next_cursor is None once the last page was returned.

        Raises:
            ValidationError:
                If page_size is out of range.

        Example:
            >>> ids, cursor = store.list(page_size=2)
            >>> while cursor is not None:
            ...     more, cursor = store.list(page_size=2, cursor=cursor)
        """
        if isinstance(page_size, bool) or not isinstance(page_size, int) or not 1 <= page_size <= self.max_page_size:
            raise ValidationError(f'Page size must be an integer between 1 and {self.max_page_size} (given value: {page_size!r}).')

        ids = self.dao.scan(after=cursor, limit=page_size)
        next_cursor = ids[-1] if len(ids) == page_size else None
        return ids, next_cursor

    def delete(self, directive_id: str) -> None:
        """Delete a directive. Deleting a missing directive succeeds."""
        self.dao.delete(directive_id)
        logger.debug('Deleted directive.', extra={'directive_id': directive_id})

    def clear(self) -> None:
        """Delete every directive."""
        self.dao.clear()
        logger.debug('Cleared all directives.')

    def redirect(self, directive_id: str, credentials: DirectiveAuth | None = None) -> str:
        """Follow a directive: look it up, check its ACLs and consume one call

        The ACL check runs on the record as read, but for directives with a
        quota the backend's atomic conditional increment has the final say:
        when concurrent redirects race for the last call, only one of them
        gets the destination.

        Args:
            directive_id (str):
                Id of the directive to follow.
            credentials (DirectiveAuth | None):
                Credentials presented by the client, if any.

        Returns:
            str: destination URL.

        Raises:
            DirectiveNotFoundError:
                If the directive doesn't exist or already expired.
            DirectiveUnauthorizedError:
                If credentials are required and missing or wrong.
            DirectiveExhaustedError:
                If the call quota is consumed.
            DataStoreError:
                If the backend fails.
        """
        directive = self.dao.get(directive_id)

        decision = evaluate(directive.acls, credentials)
        if decision == AccessDecision.UNAUTHORIZED:
            raise DirectiveUnauthorizedError(f"Directive '{directive_id}' requires valid credentials.")
        if decision == AccessDecision.EXHAUSTED:
            raise DirectiveExhaustedError(f"Directive '{directive_id}' has no calls left.")

        if counts_calls(directive.acls):
            result = self.dao.increment_calls(directive_id, directive.acls.max_calls)
            if result == IncrementResult.NOT_FOUND:
                raise DirectiveNotFoundError(f"Directive '{directive_id}' not found.")
            if result == IncrementResult.EXHAUSTED:
                raise DirectiveExhaustedError(f"Directive '{directive_id}' has no calls left.")

        return directive.destination

    @staticmethod
    def _validate(directive: Directive) -> None:
        if directive.id is not None and (not isinstance(directive.id, str) or not directive.id.strip()):
            raise ValidationError('Directive id must be a non-empty string.')

        destination = directive.destination
        if not isinstance(destination, str) or not destination.strip():
            raise ValidationError('Directive destination must be a non-empty URL.')
        parts = urlsplit(destination)
        if parts.scheme not in {'http', 'https'} or not parts.netloc:
            raise ValidationError(f"Directive destination '{destination}' is not an absolute http(s) URL.")

        max_calls = directive.acls.max_calls
        if max_calls is not None and (isinstance(max_calls, bool) or not isinstance(max_calls, int) or max_calls < 0):
            raise ValidationError(f'Directive max_calls must be a non-negative integer (given value: {max_calls!r}).')

        auth = directive.acls.auth
        if auth is not None and not (isinstance(auth.key, str) and auth.key and isinstance(auth.secret, str) and auth.secret):
            raise ValidationError('Directive auth requires a non-empty key and secret.')
