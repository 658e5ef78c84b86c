# broadcast_service/db/redis.py
import redis
from broadcast_service.core.config import settings


def get_redis_client():
    """
    Creates and returns a new Redis client instance.
    Connections are opened lazily on first command.
    """
    return redis.from_url(settings.REDIS_URL, decode_responses=True)


# Shared instance used by the notification helpers.
redis_client = get_redis_client()
