"""Unit tests for the expiry policy.

Test coverage includes:

1. parse_instant()
   - Accepts RFC-3339 instants with 'Z' or explicit offsets.
   - Rejects garbage, naive timestamps and non-strings.

2. resolve_expiry()
   - None means no expiry.
   - ExpireAt resolves to the given instant.
   - ExpireIn resolves relative to `now`; negative, non-integer, bool and out-of-range seconds are rejected.

3. seconds_until()
   - Rounds up partial seconds.
   - Clamps instants in the past to 0.
   - Relative-only backends get a TTL within 2 seconds of the requested instant.

4. is_expired()
"""

from datetime import datetime, timedelta, timezone, UTC

import pytest

from palladium.exceptions import InvalidExpiryFormatError, ValidationError
from palladium.models import ExpireAt, ExpireIn
from palladium.policies import parse_instant, resolve_expiry, seconds_until, is_expired


NOW = datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)


# -------------------------------
# 1. parse_instant()
# -------------------------------


@pytest.mark.parametrize(
    'value, expected',
    [
        ('2025-10-15T12:00:00Z', datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)),
        ('2025-10-15T14:00:00+02:00', datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)),
        ('2025-10-15T12:00:00.250000+00:00', datetime(2025, 10, 15, 12, 0, 0, 250000, tzinfo=UTC)),
    ],
)
def test_parse_instant(value, expected):
    parsed = parse_instant(value)
    assert parsed == expected
    assert parsed.tzinfo is not None


def test_parse_instant_keeps_offset():
    parsed = parse_instant('2025-10-15T14:00:00+02:00')
    assert parsed.utcoffset() == timedelta(hours=2)


@pytest.mark.parametrize('value', ['tomorrow', '', '2025-13-01T00:00:00Z', '15/10/2025'])
def test_parse_instant_with_garbage(value):
    with pytest.raises(InvalidExpiryFormatError):
        parse_instant(value)


def test_parse_instant_without_offset():
    """Ensure naive timestamps are rejected instead of silently assuming UTC."""
    with pytest.raises(InvalidExpiryFormatError, match='missing a UTC offset'):
        parse_instant('2025-10-15T12:00:00')


@pytest.mark.parametrize('value', [1760529600, None, datetime(2025, 10, 15, tzinfo=UTC)])
def test_parse_instant_with_invalid_type(value):
    with pytest.raises(InvalidExpiryFormatError):
        parse_instant(value)


def test_invalid_expiry_is_a_validation_error():
    with pytest.raises(ValidationError):
        parse_instant('nope')


# -------------------------------
# 2. resolve_expiry()
# -------------------------------


def test_resolve_no_expiry():
    assert resolve_expiry(None, NOW) is None


def test_resolve_expire_at():
    assert resolve_expiry(ExpireAt(at='2030-01-01T00:00:00Z'), NOW) == datetime(2030, 1, 1, tzinfo=UTC)


def test_resolve_expire_at_in_the_past():
    """Ensure past instants are accepted; the directive is simply already expired."""
    assert resolve_expiry(ExpireAt(at='2020-01-01T00:00:00Z'), NOW) == datetime(2020, 1, 1, tzinfo=UTC)


@pytest.mark.parametrize('seconds', [0, 1, 60, 86_400])
def test_resolve_expire_in(seconds):
    assert resolve_expiry(ExpireIn(seconds=seconds), NOW) == NOW + timedelta(seconds=seconds)


@pytest.mark.parametrize('seconds', [-1, 1.5, '60', True, None])
def test_resolve_expire_in_with_invalid_seconds(seconds):
    with pytest.raises(InvalidExpiryFormatError):
        resolve_expiry(ExpireIn(seconds=seconds), NOW)


def test_resolve_expire_in_up_to_largest_instant():
    latest = datetime.max.replace(tzinfo=UTC)
    seconds = (latest - NOW) // timedelta(seconds=1)

    assert resolve_expiry(ExpireIn(seconds=seconds), NOW) <= latest
    with pytest.raises(InvalidExpiryFormatError, match='largest representable instant'):
        resolve_expiry(ExpireIn(seconds=seconds + 1), NOW)


@pytest.mark.parametrize('seconds', [10**12, 10**18, 10**30])
def test_resolve_expire_in_out_of_range(seconds):
    with pytest.raises(InvalidExpiryFormatError):
        resolve_expiry(ExpireIn(seconds=seconds), NOW)


def test_resolve_unsupported_expiry():
    with pytest.raises(InvalidExpiryFormatError, match='Unsupported expiry specification'):
        resolve_expiry({'seconds': 60}, NOW)


# -------------------------------
# 3. seconds_until()
# -------------------------------


@pytest.mark.parametrize(
    'delta, expected',
    [
        (timedelta(seconds=60), 60),
        (timedelta(seconds=59.2), 60),
        (timedelta(milliseconds=1), 1),
        (timedelta(0), 0),
        (timedelta(seconds=-1), 0),
        (timedelta(days=-365), 0),
    ],
)
def test_seconds_until(delta, expected):
    assert seconds_until(NOW + delta, NOW) == expected


def test_seconds_until_across_offsets():
    expires_at = datetime(2025, 10, 15, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert seconds_until(expires_at, NOW) == 0
    assert seconds_until(expires_at + timedelta(hours=1), NOW) == 3600


@pytest.mark.parametrize('requested', [1, 30, 3600, 30 * 86_400])
def test_relative_ttl_stays_within_two_seconds(requested):
    """Ensure absolute -> relative conversion keeps a directive alive within +-2s of the requested instant."""
    registered_at = NOW
    expires_at = resolve_expiry(ExpireAt(at=(registered_at + timedelta(seconds=requested)).isoformat()), registered_at)

    # The write happens a little after the expiry was resolved
    written_at = registered_at + timedelta(milliseconds=750)
    ttl = seconds_until(expires_at, written_at)
    effective_expiry = written_at + timedelta(seconds=ttl)

    assert abs((effective_expiry - expires_at).total_seconds()) <= 2


# -------------------------------
# 4. is_expired()
# -------------------------------


@pytest.mark.parametrize(
    'expires_at, expected',
    [
        (None, False),
        (NOW + timedelta(seconds=1), False),
        (NOW, True),
        (NOW - timedelta(seconds=1), True),
    ],
)
def test_is_expired(expires_at, expected):
    assert is_expired(expires_at, NOW) is expected
