import json
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from eventops.services.realtime import RealtimeBroadcaster, cue_channel, event_channel


def test_channel_names():
    assert event_channel("T1") == "tenant:T1:events"
    assert cue_channel("event-9") == "event:event-9:cues"


@pytest.mark.asyncio
async def test_publish_without_redis_is_noop():
    broadcaster = RealtimeBroadcaster(redis_url=None)
    await broadcaster.initialize()

    assert broadcaster.enabled is False
    assert await broadcaster.publish("event:1:cues", {"status": "live"}) is False


@pytest.mark.asyncio
async def test_publish_serializes_payload():
    broadcaster = RealtimeBroadcaster(redis_url="redis://localhost:6379/0")
    broadcaster.client = AsyncMock()
    broadcaster.client.publish.return_value = 2

    assert await broadcaster.publish("event:1:cues", {"status": "live"}) is True

    channel, message = broadcaster.client.publish.await_args.args
    assert channel == "event:1:cues"
    assert json.loads(message) == {"status": "live"}


@pytest.mark.asyncio
async def test_publish_failure_is_swallowed():
    broadcaster = RealtimeBroadcaster(redis_url="redis://localhost:6379/0")
    broadcaster.client = AsyncMock()
    broadcaster.client.publish.side_effect = redis.ConnectionError("down")

    assert await broadcaster.publish("event:1:cues", {"status": "live"}) is False
