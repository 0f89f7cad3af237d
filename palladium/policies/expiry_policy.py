"""Expiry policy for directives

Backends enforce expiry in two different ways:
    - absolute: the backend keeps an "expire at <instant>" value per record and
      checks it (server-side or lazily at read time);
    - relative: the backend only supports "expire after N seconds from now"
      (e.g. Redis EXPIRE), so the absolute instant is turned into a delta right
      before every write.

This module owns all of that time arithmetic so the directive store stays
backend-agnostic. It performs no I/O.

Functions:
    parse_instant(value: str) -> datetime
        Parse an RFC-3339 instant into a timezone-aware datetime.

    resolve_expiry(expiry, now) -> datetime | None
        Turn an ExpireAt/ExpireIn request into an absolute expiry instant.

    seconds_until(expires_at, now) -> int
        Relative TTL for backends which only accept seconds, clamped to 0.

    is_expired(expires_at, now) -> bool
        Read-time check for backends which store the absolute instant.

Example:
    >>> from datetime import datetime, UTC
    >>> now = datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)
    >>> expires_at = resolve_expiry(ExpireIn(seconds=60), now)
    >>> seconds_until(expires_at, now)
    60
    >>> seconds_until(resolve_expiry(ExpireAt(at='2025-10-15T11:00:00Z'), now), now)
    0
"""

import math
from datetime import datetime, timedelta

from palladium.exceptions import InvalidExpiryFormatError
from palladium.models import ExpireAt, ExpireIn


def parse_instant(value: str) -> datetime:
    """Parse an RFC-3339 instant

    Args:
        value (str):
            Timestamp with a time component and a UTC offset,
            e.g. '2025-10-15T12:00:00Z' or '2025-10-15T14:00:00+02:00'.

    Returns:
        datetime: timezone-aware datetime.

    Raises:
        InvalidExpiryFormatError:
            If the value is not a string, can't be parsed, or carries no UTC offset.
    """
    if not isinstance(value, str):
        raise InvalidExpiryFormatError(f'Expiry instant must be a string (given type: {type(value)}).')

    try:
        instant = datetime.fromisoformat(value)
    except ValueError as e:
        raise InvalidExpiryFormatError(f"Expiry instant '{value}' is not a valid RFC-3339 timestamp.") from e

    if instant.tzinfo is None or instant.utcoffset() is None:
        raise InvalidExpiryFormatError(f"Expiry instant '{value}' is missing a UTC offset.")
    return instant


def resolve_expiry(expiry: ExpireAt | ExpireIn | None, now: datetime) -> datetime | None:
    """Resolve a requested expiry into an absolute instant

    Args:
        expiry (ExpireAt | ExpireIn | None):
            Requested expiry. None means no expiry.
        now (datetime):
            Current time (timezone-aware).

    Returns:
        datetime | None: absolute expiry instant, or None if the directive never expires.

    Raises:
        InvalidExpiryFormatError:
            If ExpireAt can't be parsed, or ExpireIn isn't a non-negative integer
            or lands past datetime.max.
    """
    match expiry:
        case None:
            return None
        case ExpireAt(at=at):
            return parse_instant(at)
        case ExpireIn(seconds=seconds):
            if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
                raise InvalidExpiryFormatError(f'Expiry seconds must be a non-negative integer (given value: {seconds!r}).')
            try:
                return now + timedelta(seconds=seconds)
            except OverflowError as e:
                raise InvalidExpiryFormatError(f'Expiry seconds {seconds} reach past the largest representable instant.') from e
        case _:
            raise InvalidExpiryFormatError(f'Unsupported expiry specification (given type: {type(expiry)}).')


def seconds_until(expires_at: datetime, now: datetime) -> int:
    """Convert an absolute expiry into a relative TTL in whole seconds

    NOTE: the result is only valid at `now`. Call this right before issuing
          the write which carries the TTL, never cache it.
    NOTE: instants in the past yield 0 (not a negative value and not "no TTL"),
          so the record expires immediately.

    Args:
        expires_at (datetime):
            Absolute expiry instant.
        now (datetime):
            Current time.

    Returns:
        int: seconds from `now` until `expires_at`, rounded up, never negative.

    Example:
        >>> seconds_until(now + timedelta(seconds=59.2), now)
        60
        >>> seconds_until(now - timedelta(hours=1), now)
        0
    """
    return max(0, math.ceil((expires_at - now).total_seconds()))


def is_expired(expires_at: datetime | None, now: datetime) -> bool:
    """Return True if a record with the given absolute expiry is gone at `now`."""
    return expires_at is not None and expires_at <= now
