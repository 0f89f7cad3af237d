"""Data Access Object (DAO) implementation for managing directives in Redis

This module provides a Redis-based implementation of DirectiveBaseDAO.

Storage layout (see RedisKeySchema):
    <prefix>:directives:<id>:record  -> hash {destination, curr_calls, [max_calls], [auth_key, auth_secret]}
    <prefix>:directives:index        -> sorted set of ids, all scores 0 (lexicographic range queries)

Responsibilities:
    - Upsert, retrieve and delete directives;
    - Translate absolute expiry instants into relative EXPIRE commands at write time;
    - Page through directive ids with ZRANGEBYLEX, pruning ids whose record expired;
    - Consume call quotas atomically with a Lua script;
    - Raise appropriate DAO exceptions on Redis failures.

Classes:
    DirectiveRedisDAO:
        DAO for storing and retrieving Directive records in a Redis datastore.

Example:
    >>> from palladium.models import Directive, DirectiveACLs
    >>> from palladium.dao.redis import DirectiveRedisDAO

    >>> dao = DirectiveRedisDAO(prefix="palladium:dev")
    >>> dao.put(Directive(id='abc', destination='https://example.com', acls=DirectiveACLs(max_calls=1)))
    <DirectiveRedisDAO>

    >>> dao.increment_calls('abc', max_calls=1)
    <IncrementResult.INCREMENTED: 'incremented'>
    >>> dao.increment_calls('abc', max_calls=1)
    <IncrementResult.EXHAUSTED: 'exhausted'>
"""

import logging
from datetime import datetime, timedelta, UTC

from beartype import beartype

from palladium.models import Directive, DirectiveACLs, DirectiveAuth, ExpireAt
from palladium.dao.base import DirectiveBaseDAO, IncrementResult
from palladium.dao.redis.mixins import RedisClientMixin
from palladium.dao.redis.helpers import handle_redis_connection_error
from palladium.dao.redis.scripts import INCREMENT_CALLS_SCRIPT, INCREMENT_CALLS_NOT_FOUND, INCREMENT_CALLS_EXHAUSTED
from palladium.dao.exceptions import DirectiveNotFoundError
from palladium.policies import seconds_until


logger = logging.getLogger(__name__)


class DirectiveRedisDAO(RedisClientMixin, DirectiveBaseDAO):
    """Redis-based Data Access Object (DAO) for managing directives

    This class implements the DirectiveBaseDAO interface using Redis as a data store.
    Redis only supports relative expiry (EXPIRE <seconds>), so the absolute
    `acls.expires_at` is converted into seconds right before every write.

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._increment_calls = self.redis.register_script(INCREMENT_CALLS_SCRIPT)

    @handle_redis_connection_error
    @beartype
    def put(self, directive: Directive) -> 'DirectiveRedisDAO':
        """Upsert a directive in Redis

        All commands run in one MULTI/EXEC transaction. The record is deleted
        first so an overwrite drops stale fields (e.g. a removed auth) and any
        previous TTL.

        NOTE: an expiry in the past results in EXPIRE <key> 0, which removes the
              record immediately instead of storing it without a TTL.

        Args:
            directive (Directive):
                Directive with an id and resolved acls.expires_at.

        Returns:
            DirectiveRedisDAO: self (for method chaining)

        Raises:
            ValueError:
                If the directive has no id.
            DataStoreError:
                If a Redis connection issue occurs during the transaction.
        """
        if not directive.id:
            raise ValueError('Directive must carry an id to be stored.')

        directive_key = self.keys.directive_key(directive.id)
        mapping = self._to_hash(directive)

        expires_at = directive.acls.expires_at
        ttl = None if expires_at is None else seconds_until(expires_at, datetime.now(UTC))

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(directive_key)
            pipe.hset(directive_key, mapping=mapping)
            if ttl is not None:
                pipe.expire(directive_key, ttl)
            pipe.zadd(self.keys.index_key(), {directive.id: 0})
            pipe.execute()

        logger.debug('Stored directive in Redis.', extra={'directive_id': directive.id, 'ttl': ttl})
        return self

    @handle_redis_connection_error
    @beartype
    def get(self, directive_id: str) -> Directive:
        """Retrieve a directive by id

        Fetches the record hash and its remaining TTL in a single transaction and
        computes the absolute expiry from the TTL.

        Raises:
            DirectiveNotFoundError:
                If the record doesn't exist (never stored, deleted or expired).
            DataStoreError:
                If Redis connectivity issues occur.
        """
        directive_key = self.keys.directive_key(directive_id)

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.hgetall(directive_key)
            pipe.ttl(directive_key)
            record, ttl = pipe.execute()

        if not record:
            raise DirectiveNotFoundError(f"Directive '{directive_id}' not found.")

        # TTL: -1 means no expiry, -2 means the key is gone
        expires_at = datetime.now(UTC) + timedelta(seconds=ttl) if ttl >= 0 else None
        return self._from_hash(directive_id, record, expires_at)

    @handle_redis_connection_error
    @beartype
    def delete(self, directive_id: str) -> None:
        with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(self.keys.directive_key(directive_id))
            pipe.zrem(self.keys.index_key(), directive_id)
            pipe.execute()

    @handle_redis_connection_error
    @beartype
    def scan(self, after: str | None = None, limit: int = 100) -> list[str]:
        """List directive ids in lexicographic order, strictly after `after`

        Ids are read from the index sorted set. Records expire on their own
        while their index entries don't, so every batch is checked for
        existence and stale ids are removed from the index before reading on.

        NOTE: no snapshot isolation. Registrations or deletions between two
              calls may make adjacent ids show up or go missing across pages.
        """
        index_key = self.keys.index_key()
        ids: list[str] = []
        lower = '-' if after is None else f'({after}'

        while len(ids) < limit:
            wanted = limit - len(ids)
            batch = self.redis.zrangebylex(index_key, lower, '+', start=0, num=wanted)
            if not batch:
                break

            with self.redis.pipeline(transaction=False) as pipe:
                for directive_id in batch:
                    pipe.exists(self.keys.directive_key(directive_id))
                alive = pipe.execute()

            stale = [directive_id for directive_id, exists in zip(batch, alive) if not exists]
            if stale:
                logger.debug('Pruning expired directives from index.', extra={'stale_ids': stale})
                self.redis.zrem(index_key, *stale)

            ids.extend(directive_id for directive_id, exists in zip(batch, alive) if exists)
            if len(batch) < wanted:
                break
            lower = f'({batch[-1]}'

        return ids

    @handle_redis_connection_error
    def clear(self) -> None:
        """Delete every directive record and the index

        NOTE: record keys are collected with SCAN before the deleting transaction,
              so directives registered while clear() runs may survive it.
        """
        record_keys = list(self.redis.scan_iter(match=self.keys.directive_key('*'), count=1_000))
        with self.redis.pipeline(transaction=True) as pipe:
            if record_keys:
                pipe.delete(*record_keys)
            pipe.delete(self.keys.index_key())
            pipe.execute()

        logger.debug('Cleared directives from Redis.', extra={'deleted': len(record_keys)})

    @handle_redis_connection_error
    @beartype
    def increment_calls(self, directive_id: str, max_calls: int) -> IncrementResult:
        """Consume one call of a directive's quota with a single server-side script

        Example:
            >>> dao.increment_calls('abc', max_calls=2)
            <IncrementResult.INCREMENTED: 'incremented'>
        """
        result = self._increment_calls(keys=[self.keys.directive_key(directive_id)], args=[max_calls])

        if result == INCREMENT_CALLS_NOT_FOUND:
            return IncrementResult.NOT_FOUND
        if result == INCREMENT_CALLS_EXHAUSTED:
            return IncrementResult.EXHAUSTED
        return IncrementResult.INCREMENTED

    @staticmethod
    def _to_hash(directive: Directive) -> dict[str, str | int]:
        acls = directive.acls
        mapping: dict[str, str | int] = {
            'destination': directive.destination,
            'curr_calls': acls.curr_calls,
        }
        if acls.max_calls is not None:
            mapping['max_calls'] = acls.max_calls
        if acls.auth is not None:
            mapping['auth_key'] = acls.auth.key
            mapping['auth_secret'] = acls.auth.secret
        return mapping

    @staticmethod
    def _from_hash(directive_id: str, record: dict[str, str], expires_at: datetime | None) -> Directive:
        auth = None
        if 'auth_key' in record:
            auth = DirectiveAuth(key=record['auth_key'], secret=record.get('auth_secret', ''))

        max_calls = record.get('max_calls')
        return Directive(
            id=directive_id,
            destination=record['destination'],
            acls=DirectiveACLs(
                expiry=ExpireAt(at=expires_at.isoformat()) if expires_at is not None else None,
                max_calls=int(max_calls) if max_calls is not None else None,
                curr_calls=int(record.get('curr_calls', 0)),
                auth=auth,
                expires_at=expires_at,
            ),
        )
