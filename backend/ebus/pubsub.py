from __future__ import annotations

import json
import os
from contextlib import suppress
from datetime import datetime
from typing import Any, AsyncIterator

import redis.asyncio as redis

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
_redis = None

async def get_redis():
    global _redis
    if _redis is None:
        if os.getenv("TESTING") == "1":
            from fakeredis import aioredis
            _redis = aioredis.FakeRedis()
        else:
            _redis = redis.from_url(REDIS_URL)
    return _redis

def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _serialize_event(event: dict[str, Any]) -> str:
    return json.dumps(event, default=_json_default)


def state_channel(key: str) -> str:
    return f"state:{key}"


async def publish_state_event(key: str, event: dict[str, Any]) -> None:
    """Notify other devices that the state document changed."""

    r = await get_redis()
    await r.publish(state_channel(key), _serialize_event(event))


async def subscribe_state(key: str):
    r = await get_redis()
    subscription = r.pubsub()
    await subscription.subscribe(state_channel(key))
    return subscription


async def iter_messages(subscription) -> AsyncIterator[str]:
    """Yield published payloads from an open subscription as text."""

    async for message in subscription.listen():
        if message.get("type") != "message":
            continue
        data = message.get("data")
        if isinstance(data, bytes):
            yield data.decode()
        else:
            yield str(data)


async def close_subscription(subscription, key: str) -> None:
    with suppress(Exception):
        await subscription.unsubscribe(state_channel(key))
    with suppress(AttributeError):
        await subscription.close()
