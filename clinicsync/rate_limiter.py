"""
Hybrid in-memory + Redis rate limiting for inbound webhooks

Counters live in process memory and are synced to Redis every few seconds when
REDIS_URL is configured, so several workers converge on a shared count without
one Redis round-trip per request. Limiter failures let the request through:
n8n retries are cheaper than dropped patient answers.
"""

import logging
import time
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

from . import config

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None
redis_unavailable = False

# {key: {"count": int, "reset_time": int, "last_redis_sync": int}}
memory_cache: dict[str, dict] = {}
cache_lock = Lock()

MEMORY_CACHE_SYNC_INTERVAL = 10
MEMORY_CACHE_CLEANUP_INTERVAL = 60
last_cleanup_time = 0


def get_redis_client() -> Optional[redis.Redis]:
    """Lazily connect to Redis; None when not configured or unreachable"""
    global redis_client, redis_unavailable

    if redis_client is not None or redis_unavailable or not config.REDIS_URL:
        return redis_client

    logger.info("🔄 Initializing Redis connection for rate limiting...")
    try:
        client = redis.from_url(
            config.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
        client.ping()
    except redis.RedisError as e:
        logger.error(f"❌ Failed to connect to Redis: {e}")
        logger.warning("⚠️ Rate limiting continues in memory only")
        redis_unavailable = True
        return None

    redis_client = client
    logger.info("✅ Redis connected for rate limiting")
    return redis_client


def reset_rate_limits():
    """Forget every in-memory counter"""
    global last_cleanup_time
    with cache_lock:
        memory_cache.clear()
    last_cleanup_time = 0


def cleanup_expired_cache(current_time: int):
    global last_cleanup_time

    if current_time - last_cleanup_time < MEMORY_CACHE_CLEANUP_INTERVAL:
        return

    with cache_lock:
        expired_keys = [k for k, v in memory_cache.items() if current_time >= v["reset_time"]]
        for k in expired_keys:
            del memory_cache[k]

    if expired_keys:
        logger.debug(f"🧹 Cleaned up {len(expired_keys)} expired rate limit entries")
    last_cleanup_time = current_time


def _new_entry(key: str, window_seconds: int, current_time: int, client) -> dict:
    """Start a window, resuming the shared count from Redis when one exists"""
    if client is not None:
        try:
            redis_count = client.get(key)
            redis_ttl = client.ttl(key)
            if redis_count and redis_ttl > 0:
                return {
                    "count": int(redis_count),
                    "reset_time": current_time + redis_ttl,
                    "last_redis_sync": current_time,
                }
        except redis.RedisError as e:
            logger.warning(f"⚠️ Failed to load {key} from Redis, using memory only: {e}")

    return {
        "count": 0,
        "reset_time": current_time + window_seconds,
        "last_redis_sync": current_time,
    }


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis] = None
) -> tuple[bool, int, int]:
    """
    Count one request against key.

    Returns:
        Tuple of (is_allowed, current_count, ttl_seconds)
    """
    current_time = int(time.time())
    cleanup_expired_cache(current_time)

    with cache_lock:
        if key not in memory_cache:
            memory_cache[key] = _new_entry(key, window_seconds, current_time, client)

        entry = memory_cache[key]

        if current_time >= entry["reset_time"]:
            entry["count"] = 0
            entry["reset_time"] = current_time + window_seconds
            entry["last_redis_sync"] = 0

        is_allowed = entry["count"] < limit
        if is_allowed:
            entry["count"] += 1

        if client is not None and current_time - entry["last_redis_sync"] >= MEMORY_CACHE_SYNC_INTERVAL:
            try:
                client.set(key, entry["count"], ex=window_seconds)
                entry["last_redis_sync"] = current_time
            except redis.RedisError as e:
                logger.warning(f"⚠️ Failed to sync {key} to Redis: {e}")

        return is_allowed, entry["count"], max(0, entry["reset_time"] - current_time)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


async def rate_limit_dependency(
    request: Request, limit: int, window_seconds: int, key_prefix: str = "rate_limit"
):
    """Raise 429 once the caller's IP exhausted its window"""
    key = f"{key_prefix}:{client_ip(request)}"

    try:
        is_allowed, current_count, ttl = check_rate_limit(
            key, limit, window_seconds, get_redis_client()
        )
    except Exception as e:
        logger.error(f"❌ Rate limit check failed for {key}, allowing request: {e}")
        return

    if not is_allowed:
        logger.warning(f"🚫 Rate limit EXCEEDED for {key} - {current_count}/{limit}")
        raise HTTPException(
            status_code=429,
            detail={
                "message": f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after": ttl,
            },
            headers={"Retry-After": str(ttl)},
        )


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Build a rate limiter dependency.

        webhook_rate_limit = create_rate_limiter(limit=120, window_seconds=60, key_prefix="webhook")

        @router.post("/status")
        async def status_webhook(..., _: None = Depends(webhook_rate_limit)):
            ...
    """

    async def rate_limiter(request: Request):
        return await rate_limit_dependency(request, limit, window_seconds, key_prefix)

    return rate_limiter
