from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class DirectiveAuth:
    """Credential pair which must be presented to follow a directive."""

    key: str
    secret: str


@dataclass(frozen=True)
class ExpireAt:
    """Expire a directive at an absolute RFC-3339 instant, e.g. '2025-10-15T12:00:00Z'."""

    at: str


@dataclass(frozen=True)
class ExpireIn:
    """Expire a directive a number of seconds after it is registered."""

    seconds: int


@dataclass(frozen=True)
class DirectiveACLs:
    """Access-control block of a directive.

    Attributes:
        expiry (ExpireAt | ExpireIn | None):
            Requested expiry. None means the directive lives until deleted.
        max_calls (int | None):
            Upper bound on successful redirects. None means unlimited.
        curr_calls (int):
            Successful redirects so far. Maintained by the store, reset to 0 on every write.
        auth (DirectiveAuth | None):
            Credentials required to follow the directive. None means no auth.
        expires_at (datetime | None):
            Resolved absolute expiry. Maintained by the store and the backend.
    """

    expiry: ExpireAt | ExpireIn | None = None
    max_calls: int | None = None
    curr_calls: int = 0
    auth: DirectiveAuth | None = None
    expires_at: datetime | None = None


@dataclass(frozen=True)
class Directive:
    """Represent a registered mapping from an identifier to a destination URL.

    Attributes:
        destination (str):
            Absolute URL the directive redirects to.
        acls (DirectiveACLs):
            Expiry, call quota and credential gate of the directive.
        id (str | None):
            Unique identifier. Generated by the store when missing on register.

    Example:
        >>> directive = Directive(
        ...     destination='https://example.com/article/123',
        ...     acls=DirectiveACLs(expiry=ExpireIn(seconds=60), max_calls=1),
        ... )
        >>> directive.acls.max_calls
        1
        >>> directive.id is None
        True
    """

    destination: str
    acls: DirectiveACLs = field(default_factory=DirectiveACLs)
    id: str | None = None
