from palladium.policies.access_policy import AccessDecision, evaluate, counts_calls
from palladium.policies.expiry_policy import parse_instant, resolve_expiry, seconds_until, is_expired


__all__ = [
    'AccessDecision',
    'evaluate',
    'counts_calls',
    'parse_instant',
    'resolve_expiry',
    'seconds_until',
    'is_expired',
]
