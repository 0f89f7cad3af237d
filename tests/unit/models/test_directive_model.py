"""Unit tests for the directive dataclasses in directive_model.py.

Test coverage includes:

1. Model creation
   - Ensures directives can be created with and without ACLs.
   - Verifies ACL defaults (no expiry, no quota, no auth, zero calls).

2. Equality semantics
   - Confirms that directives with identical data compare equal.
   - Ensures differing ids, destinations or ACLs produce non-equal instances.

3. Immutability
   - Verifies that fields are frozen and cannot be reassigned.
"""

from dataclasses import FrozenInstanceError, replace
from datetime import datetime, UTC

import pytest

from palladium.models import Directive, DirectiveACLs, DirectiveAuth, ExpireAt, ExpireIn


# -------------------------------------------------
# 1. Model creation
# -------------------------------------------------


def test_directive_creation():
    """Ensure a directive can be created with a full ACL block."""
    expires_at = datetime(2030, 1, 1, tzinfo=UTC)
    directive = Directive(
        id='abc123',
        destination='https://example.com/article/123',
        acls=DirectiveACLs(
            expiry=ExpireAt(at='2030-01-01T00:00:00Z'),
            max_calls=10,
            curr_calls=3,
            auth=DirectiveAuth(key='alice', secret='s3cr3t'),
            expires_at=expires_at,
        ),
    )

    assert directive.id == 'abc123'
    assert directive.destination == 'https://example.com/article/123'
    assert directive.acls.expiry == ExpireAt(at='2030-01-01T00:00:00Z')
    assert directive.acls.max_calls == 10
    assert directive.acls.curr_calls == 3
    assert directive.acls.auth == DirectiveAuth(key='alice', secret='s3cr3t')
    assert directive.acls.expires_at == expires_at


def test_directive_defaults():
    """Ensure a directive without ACLs has no restrictions."""
    directive = Directive(destination='https://example.com')

    assert directive.id is None
    assert directive.acls == DirectiveACLs()
    assert directive.acls.expiry is None
    assert directive.acls.max_calls is None
    assert directive.acls.curr_calls == 0
    assert directive.acls.auth is None
    assert directive.acls.expires_at is None


def test_acls_are_not_shared_between_instances():
    first = Directive(destination='https://example.com/1')
    second = Directive(destination='https://example.com/2')
    assert first.acls is not second.acls


# -------------------------------------------------
# 2. Equality semantics
# -------------------------------------------------


def test_equal_directives():
    """Ensure directives with the same data compare equal."""
    acls = DirectiveACLs(expiry=ExpireIn(seconds=60), max_calls=1)
    assert Directive(id='x', destination='https://example.com', acls=acls) == Directive(id='x', destination='https://example.com', acls=acls)


@pytest.mark.parametrize(
    'changes',
    [
        {'id': 'y'},
        {'destination': 'https://example.org'},
        {'acls': DirectiveACLs(max_calls=2)},
        {'acls': DirectiveACLs(auth=DirectiveAuth(key='k', secret='s'))},
    ],
)
def test_unequal_directives(changes):
    """Ensure any differing field makes directives non-equal."""
    directive = Directive(id='x', destination='https://example.com')
    assert directive != replace(directive, **changes)


# -------------------------------------------------
# 3. Immutability
# -------------------------------------------------


def test_directive_is_frozen():
    directive = Directive(destination='https://example.com')
    with pytest.raises(FrozenInstanceError):
        directive.destination = 'https://example.org'


def test_acls_are_frozen():
    acls = DirectiveACLs(max_calls=1)
    with pytest.raises(FrozenInstanceError):
        acls.curr_calls = 1
