from palladium.dao.redis.redis_key_schema import RedisKeySchema
from palladium.dao.redis.mixins import RedisClientMixin
from palladium.dao.redis.directive_redis_dao import DirectiveRedisDAO


__all__ = [
    'RedisKeySchema',
    'RedisClientMixin',
    'DirectiveRedisDAO',
]
