"""Access policy evaluation for directive redirects

Checks run in a fixed order and the first match wins:
    1. credential gate  -> UNAUTHORIZED
    2. call quota       -> EXHAUSTED
    3. otherwise        -> ALLOW

An ALLOW for a directive with a call quota obliges the caller to consume one
call through the backend's atomic conditional increment, see counts_calls().
"""

import hmac
from enum import StrEnum

from palladium.models import DirectiveACLs, DirectiveAuth


class AccessDecision(StrEnum):
    ALLOW = 'allow'
    UNAUTHORIZED = 'unauthorized'
    EXHAUSTED = 'exhausted'


def credentials_match(expected: DirectiveAuth, presented: DirectiveAuth | None) -> bool:
    if presented is None:
        return False
    # Compare both halves so timing doesn't reveal which one was wrong
    key_ok = hmac.compare_digest(expected.key.encode('utf-8'), presented.key.encode('utf-8'))
    secret_ok = hmac.compare_digest(expected.secret.encode('utf-8'), presented.secret.encode('utf-8'))
    return key_ok and secret_ok


def evaluate(acls: DirectiveACLs, credentials: DirectiveAuth | None = None) -> AccessDecision:
    """Decide whether a redirect through a directive is permitted

    Args:
        acls (DirectiveACLs):
            Access-control block of the directive as last read from the store.
        credentials (DirectiveAuth | None):
            Credentials presented with the redirect request, if any.

    Returns:
        AccessDecision: ALLOW, UNAUTHORIZED or EXHAUSTED.

    Example:
        >>> evaluate(DirectiveACLs(auth=DirectiveAuth('k', 's')), None)
        <AccessDecision.UNAUTHORIZED: 'unauthorized'>
        >>> evaluate(DirectiveACLs(max_calls=1, curr_calls=1))
        <AccessDecision.EXHAUSTED: 'exhausted'>
        >>> evaluate(DirectiveACLs())
        <AccessDecision.ALLOW: 'allow'>
    """
    if acls.auth is not None and not credentials_match(acls.auth, credentials):
        return AccessDecision.UNAUTHORIZED
    if acls.max_calls is not None and acls.curr_calls >= acls.max_calls:
        return AccessDecision.EXHAUSTED
    return AccessDecision.ALLOW


def counts_calls(acls: DirectiveACLs) -> bool:
    """Return True if an allowed redirect must consume one call of the quota."""
    return acls.max_calls is not None
