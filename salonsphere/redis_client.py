"""
Redis connection used by the query cache and the realtime bridge
Supports both standard Redis and Upstash managed Redis
"""

import logging
import os
from typing import Optional

import redis

logger = logging.getLogger(__name__)

# Redis connection
redis_client: Optional[redis.Redis] = None


def _mask_url(redis_url: str) -> str:
    if "@" in redis_url:
        url_parts = redis_url.split("@")
        protocol = url_parts[0].split(":")[0]
        return f"{protocol}:****@{url_parts[1]}"
    return "****"


def create_redis_client() -> redis.Redis:
    """Build a new Redis client from REDIS_URL or the individual REDIS_* settings"""
    redis_url = os.getenv("REDIS_URL")

    if redis_url:
        logger.info(f"📡 Using Redis URL connection: {_mask_url(redis_url)}")
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )
    else:
        redis_host = os.getenv("REDIS_HOST", "localhost")
        redis_port = int(os.getenv("REDIS_PORT", "6379"))
        redis_password = os.getenv("REDIS_PASSWORD", None)
        redis_db = int(os.getenv("REDIS_DB", "0"))
        redis_ssl = os.getenv("REDIS_SSL", "false").lower() == "true"

        logger.info(
            f"📡 Using Redis at {redis_host}:{redis_port} db={redis_db} "
            f"ssl={'on' if redis_ssl else 'off'} password={'set' if redis_password else 'not set'}"
        )
        client = redis.Redis(
            host=redis_host,
            port=redis_port,
            password=redis_password,
            db=redis_db,
            ssl=redis_ssl,
            decode_responses=True,
            socket_connect_timeout=15,
            socket_timeout=30,
            retry_on_timeout=True,
            health_check_interval=30,
            max_connections=20,
        )

    # Test connection
    client.ping()
    logger.info("Redis connected successfully")
    return client


def get_redis_client() -> redis.Redis:
    """Get or create the process Redis client"""
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection...")
        try:
            redis_client = create_redis_client()
        except Exception as e:
            logger.error(f"❌ Failed to connect to Redis: {str(e)}")
            logger.error("⚠️ Query cache will operate in fail-open mode (every read is a miss)")
            raise

    return redis_client
