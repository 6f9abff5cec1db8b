import json

import httpx
import pytest

from app.models.profile import UserProfile
from app.services.profile_store import ProfileStore
from app.services.redis_service import RedisService


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the profile store."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.lists: dict[str, list[str]] = {}
        self.closed = False

    async def get(self, key):
        return self.values.get(key)

    async def set(self, key, value):
        self.values[key] = value
        return True

    async def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    async def ltrim(self, key, start, end):
        items = self.lists.get(key, [])
        stop = None if end == -1 else end + 1
        self.lists[key] = items[start:stop]
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def store(fake_redis):
    return ProfileStore(redis=RedisService(client=fake_redis), notes_max_entries=10)


@pytest.fixture()
def make_profile():
    def _make(**fields) -> UserProfile:
        return UserProfile(user_id=fields.pop("user_id", "1"), **fields)

    return _make


def openai_reply(content, usage=None) -> httpx.Response:
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    if usage:
        body["usage"] = usage
    return httpx.Response(200, json=body)


def anthropic_reply(text, usage=None) -> httpx.Response:
    body = {"content": [{"type": "text", "text": text}]}
    if usage:
        body["usage"] = usage
    return httpx.Response(200, json=body)


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content)
