"""
测试公共夹具：内存版异步 Redis + 失败注入
"""

import asyncio
from collections import defaultdict

import pytest

from todolist.cache.redis_client import RedisConnection
from todolist.config import Settings
from todolist.todo.store import TodoStore


class FakeRedis:
    """
    redis.asyncio.Redis 的最小内存替身，只实现 TodoStore 用到的命令。

    fail(command, exc, key=...)：命令（可限定 key）被调用时抛 exc
    hang(command)：命令永不返回，用于超时测试
    """

    def __init__(self):
        self.strings: dict[str, int] = {}
        self.hashes: dict[str, dict[str, str]] = defaultdict(dict)
        self.zsets: dict[str, dict[str, float]] = defaultdict(dict)
        self.calls: list[tuple] = []
        self.closed = False
        self._failures: list[tuple[str, Exception, str | None]] = []
        self._hanging: set[str] = set()

    # ── 失败注入 ──

    def fail(self, command: str, exc: Exception, key: str | None = None) -> None:
        self._failures.append((command.upper(), exc, key))

    def hang(self, command: str) -> None:
        self._hanging.add(command.upper())

    async def _enter(self, command: str, *args) -> None:
        self.calls.append((command, *args))
        for name, exc, key in self._failures:
            if name == command and (key is None or key in args):
                raise exc
        if command in self._hanging:
            await asyncio.Event().wait()

    def _drop_empty(self, key: str) -> None:
        if key in self.zsets and not self.zsets[key]:
            del self.zsets[key]
        if key in self.hashes and not self.hashes[key]:
            del self.hashes[key]

    def count(self, command: str) -> int:
        return sum(1 for call in self.calls if call[0] == command)

    # ── 命令 ──

    async def ping(self):
        await self._enter("PING")
        return True

    async def incr(self, key):
        await self._enter("INCR", key)
        self.strings[key] = self.strings.get(key, 0) + 1
        return self.strings[key]

    async def hset(self, key, mapping=None):
        await self._enter("HSET", key)
        record = self.hashes[key]
        added = sum(1 for field in mapping if field not in record)
        record.update({k: str(v) for k, v in mapping.items()})
        return added

    async def hmget(self, key, fields):
        await self._enter("HMGET", key)
        record = self.hashes.get(key, {})
        return [record.get(field) for field in fields]

    async def zadd(self, key, mapping, xx=False):
        await self._enter("ZADD", key)
        zset = self.zsets[key]
        added = 0
        for member, score in mapping.items():
            if member not in zset:
                if xx:
                    continue
                added += 1
            zset[member] = float(score)
        self._drop_empty(key)
        return added

    async def zrange(self, key, start, end):
        await self._enter("ZRANGE", key)
        members = sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]))
        members = [m for m, _ in members]
        return members[start:] if end == -1 else members[start : end + 1]

    async def zrem(self, key, *members):
        await self._enter("ZREM", key, *members)
        zset = self.zsets.get(key, {})
        removed = sum(1 for m in members if zset.pop(m, None) is not None)
        self._drop_empty(key)
        return removed

    async def zcard(self, key):
        await self._enter("ZCARD", key)
        return len(self.zsets.get(key, {}))

    async def zremrangebyscore(self, key, min, max):
        await self._enter("ZREMRANGEBYSCORE", key, min, max)
        zset = self.zsets.get(key, {})
        lo, hi = float(min), float(max)
        doomed = [m for m, s in zset.items() if lo <= s <= hi]
        for m in doomed:
            del zset[m]
        self._drop_empty(key)
        return len(doomed)

    async def delete(self, *keys):
        await self._enter("DEL", *keys)
        removed = 0
        for key in keys:
            for space in (self.strings, self.hashes, self.zsets):
                if key in space:
                    del space[key]
                    removed += 1
        return removed

    async def flushall(self):
        await self._enter("FLUSHALL")
        self.strings.clear()
        self.hashes.clear()
        self.zsets.clear()
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture
def settings() -> Settings:
    return Settings(REDIS_COMMAND_TIMEOUT=0.2, TODO_DEFAULT_USER_ID="default")


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def connection(settings, fake_redis) -> RedisConnection:
    return RedisConnection(settings, client=fake_redis)


@pytest.fixture
def store(connection) -> TodoStore:
    return TodoStore(connection)
