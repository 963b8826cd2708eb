"""Redis configuration for the ARQ notification queue and worker."""
from arq.connections import RedisSettings
from meetrelay.config import settings
from urllib.parse import urlparse


def parse_redis_url(url: str) -> RedisSettings:
    """Parse a redis:// or rediss:// URL into RedisSettings."""
    parsed = urlparse(url)
    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        username=parsed.username,
        password=parsed.password,
        database=int(parsed.path[1:]) if parsed.path and len(parsed.path) > 1 else 0,
        ssl=parsed.scheme == "rediss",
    )


redis_settings = parse_redis_url(settings.redis_url)
