"""In-memory stand-ins for infrastructure the tests should not need."""

from __future__ import annotations

import json


class FakeRedis:

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.published: list[tuple[str, dict]] = []

    async def ping(self) -> bool:
        return True

    async def get(self, key: str):
        return self.store.get(key)

    async def set(self, key: str, value) -> bool:
        self.store[key] = str(value)
        return True

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, json.loads(message)))
        return 1

    async def aclose(self) -> None:
        return None


class BrokenRedis(FakeRedis):

    async def set(self, key: str, value) -> bool:
        raise ConnectionError("redis is down")

    async def get(self, key: str):
        raise ConnectionError("redis is down")
