"""
Todo Redis 存储层

数据映射：
- todo:{id}         Hash，字段 title / order / completed / userID
- todoset:{user_id} Sorted Set，member = document_id，score = order
- todoseq:id        全局计数器，INCR 分配 document_id（可能有空洞，永不复用）

一致性边界只有 Redis 单条命令的原子性。多步操作严格按依赖顺序执行，
相互独立的命令（get_all 的逐条读取、clear 的逐条删除）并发发出，
但必须全部完成后才返回调用方。

容错策略：
- 任何命令失败都归类为 todolist.todo.errors 中最具体的异常后抛出，绝不降级为空结果
- get_all 采用 fail-fast：任一条记录读取/解码失败即整体失败
- update 会同步 Sorted Set 的 score，保证 get_all 顺序与 order 字段一致

排序：get_all 按 score（order）升序；order 相同时按 Redis 规则比较 member
字符串，即 document_id 的字典序（"10" 排在 "2" 之前），不是创建顺序。
"""

import asyncio
import functools
import time
from collections.abc import Awaitable

import structlog
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from todolist.cache.redis_client import RedisConnection, RedisKeys
from todolist.config import get_settings
from todolist.observability.metrics import STORE_OP_DURATION, STORE_OP_TOTAL
from todolist.todo import codec
from todolist.todo.errors import (
    AuthorizationError,
    ClearError,
    CreationError,
    MissingRecordError,
    NotFoundError,
    OrphanRecordError,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
)
from todolist.todo.schemas import TodoItem

log = structlog.get_logger()


def resolve_user_id(user_id: str | None) -> str:
    """调用方身份解析：唯一一处把空 user_id 落到默认值"""
    return user_id or get_settings().TODO_DEFAULT_USER_ID


def _instrumented(op: str):
    """记录操作次数与耗时"""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.monotonic()
            outcome = "success"
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                outcome = type(e).__name__
                raise
            finally:
                STORE_OP_TOTAL.labels(op=op, outcome=outcome).inc()
                STORE_OP_DURATION.labels(op=op).observe(
                    (time.monotonic() - start) * 1000
                )

        return wrapper

    return decorator


class TodoStore:
    """按用户划分的 Todo CRUD，持有一个 RedisConnection"""

    def __init__(self, connection: RedisConnection):
        self.connection = connection

    # ── 基础设施 ──

    async def _call(self, command: str, awaitable: Awaitable, **context):
        """
        执行单条 Redis 命令：施加超时，并把 redis 异常映射为存储层异常。
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=self.connection.timeout)
        except (RedisTimeoutError, asyncio.TimeoutError) as e:
            log.warning("Redis 命令超时", command=command, timeout=self.connection.timeout, **context)
            raise StoreTimeoutError(f"{command} 超时（{self.connection.timeout}s）", cause=e) from e
        except RedisConnectionError as e:
            log.error("Redis 连接中断", command=command, error=str(e), **context)
            raise StoreConnectionError(f"{command} 连接失败: {e}", cause=e) from e
        except RedisError as e:
            log.error("Redis 命令失败", command=command, error=str(e), **context)
            raise StoreError(f"{command} 失败: {e}", cause=e) from e

    async def _client(self):
        return await self.connection.ensure_connected()

    async def _lookup(self, document_id: str) -> TodoItem:
        """HMGET 读取并解码单条记录，不做归属校验"""
        redis = await self._client()
        values = await self._call(
            "HMGET",
            redis.hmget(RedisKeys.todo_item(document_id), list(codec.ITEM_FIELDS)),
            document_id=document_id,
        )
        return codec.decode_item(document_id, values)

    async def _owned(self, user_id: str, document_id: str) -> TodoItem:
        item = await self._lookup(document_id)
        if item.user_id != user_id:
            log.warning(
                "Todo 归属校验失败",
                document_id=document_id,
                user_id=user_id,
                owner=item.user_id,
            )
            raise AuthorizationError(document_id, user_id)
        return item

    async def _index_members(self, user_id: str) -> list[str]:
        redis = await self._client()
        return await self._call(
            "ZRANGE", redis.zrange(RedisKeys.todo_index(user_id), 0, -1), user_id=user_id
        )

    # ── 查询 ──

    @_instrumented("count")
    async def count(self, user_id: str | None = None) -> int:
        """用户 Todo 数量（ZCARD）"""
        user_id = resolve_user_id(user_id)
        redis = await self._client()
        return int(
            await self._call(
                "ZCARD", redis.zcard(RedisKeys.todo_index(user_id)), user_id=user_id
            )
        )

    @_instrumented("get_all")
    async def get_all(self, user_id: str | None = None) -> list[TodoItem]:
        """按 order 升序返回用户全部 Todo，任一条失败则整体失败"""
        user_id = resolve_user_id(user_id)
        document_ids = await self._index_members(user_id)
        if not document_ids:
            return []

        # 等全部读取结束再判定；gather 保持入参顺序，结果顺序即索引顺序
        results = await asyncio.gather(
            *(self._lookup(doc_id) for doc_id in document_ids),
            return_exceptions=True,
        )
        for doc_id, result in zip(document_ids, results):
            if isinstance(result, BaseException):
                log.error(
                    "Todo 读取失败，get_all 整体失败",
                    document_id=doc_id,
                    user_id=user_id,
                    error_type=type(result).__name__,
                )
                raise result
        return results

    @_instrumented("get_one")
    async def get_one(self, document_id: str, user_id: str | None = None) -> TodoItem:
        """读取单条 Todo 并校验归属"""
        return await self._owned(resolve_user_id(user_id), document_id)

    # ── 写入 ──

    @_instrumented("add")
    async def add(
        self,
        title: str,
        order: int = 0,
        completed: bool = False,
        user_id: str | None = None,
    ) -> TodoItem:
        """
        新建 Todo，严格按序执行：

        1. INCR 分配 document_id
        2. HSET 写入完整 Hash
        3. ZADD 加入用户索引

        第 2 步失败直接抛 CreationError(stage="hash")，不会执行第 3 步；
        第 3 步失败时 Hash 已成孤儿，抛 CreationError(stage="index")。
        """
        user_id = resolve_user_id(user_id)
        redis = await self._client()

        document_id = str(
            await self._call("INCR", redis.incr(RedisKeys.todo_id_counter()), user_id=user_id)
        )

        fields = codec.encode_item_fields(title, order, completed, user_id)
        try:
            await self._call(
                "HSET",
                redis.hset(RedisKeys.todo_item(document_id), mapping=fields),
                document_id=document_id,
            )
        except (StoreError, StoreConnectionError) as e:
            log.error("Todo Hash 写入失败，ID 作废", document_id=document_id, user_id=user_id)
            raise CreationError(document_id, "hash", cause=e) from e

        try:
            added = await self._call(
                "ZADD",
                redis.zadd(RedisKeys.todo_index(user_id), {document_id: order}),
                document_id=document_id,
            )
        except (StoreError, StoreConnectionError) as e:
            log.error("Todo 索引写入失败，遗留孤儿记录", document_id=document_id, user_id=user_id)
            raise CreationError(document_id, "index", cause=e) from e

        if added != 1:
            # 新分配的 ID 不应已在索引中
            log.warning("ZADD 未新增成员", document_id=document_id, user_id=user_id)

        item = TodoItem(
            document_id=document_id,
            user_id=user_id,
            title=title,
            order=order,
            completed=completed,
        )
        log.info("Todo 已创建", document_id=document_id, user_id=user_id)
        return item

    @_instrumented("update")
    async def update(
        self,
        document_id: str,
        user_id: str | None = None,
        title: str | None = None,
        order: int | None = None,
        completed: bool | None = None,
    ) -> TodoItem:
        """
        部分更新：只写入传入的字段，未传字段保持不变。

        写入前先校验归属；order 变化时同步 Sorted Set score。
        不传任何字段时等价于 get_one。
        """
        user_id = resolve_user_id(user_id)
        current = await self._owned(user_id, document_id)

        fields = codec.encode_partial_fields(title=title, order=order, completed=completed)
        if not fields:
            return current

        redis = await self._client()
        item_key = RedisKeys.todo_item(document_id)
        created = await self._call(
            "HSET", redis.hset(item_key, mapping=fields), document_id=document_id
        )
        if created:
            # 完整记录的字段都已存在，HSET 新建了字段说明记录已被并发 delete
            await self._call("DEL", redis.delete(item_key), document_id=document_id)
            log.warning(
                "Todo 更新时记录已被删除", document_id=document_id, user_id=user_id
            )
            raise MissingRecordError(document_id)

        if order is not None and order != current.order:
            # XX：只更新已存在成员，避免并发 delete 后被重新加回索引
            await self._call(
                "ZADD",
                redis.zadd(RedisKeys.todo_index(user_id), {document_id: order}, xx=True),
                document_id=document_id,
            )

        return await self._owned(user_id, document_id)

    # ── 删除 ──

    @_instrumented("delete")
    async def delete(self, document_id: str, user_id: str | None = None) -> None:
        """先 ZREM 移出用户索引（不存在则 NotFoundError），再 DEL 记录"""
        user_id = resolve_user_id(user_id)
        redis = await self._client()

        removed = await self._call(
            "ZREM",
            redis.zrem(RedisKeys.todo_index(user_id), document_id),
            document_id=document_id,
        )
        if not removed:
            raise NotFoundError(f"用户 {user_id} 下不存在 todo {document_id}")

        try:
            await self._call(
                "DEL", redis.delete(RedisKeys.todo_item(document_id)), document_id=document_id
            )
        except (StoreError, StoreConnectionError) as e:
            log.error("Todo 已移出索引但记录删除失败", document_id=document_id, user_id=user_id)
            raise OrphanRecordError(document_id, cause=e) from e

        log.info("Todo 已删除", document_id=document_id, user_id=user_id)

    @_instrumented("clear")
    async def clear(self, user_id: str | None = None) -> None:
        """
        清空用户全部 Todo，计数器保持不变。

        逐条 DEL 并发执行并收集失败；全部成功才整体清空索引，
        否则只移除已删除的成员，失败的仍留在索引中并抛 ClearError。
        """
        user_id = resolve_user_id(user_id)
        document_ids = await self._index_members(user_id)
        if not document_ids:
            return

        redis = await self._client()
        results = await asyncio.gather(
            *(
                self._call(
                    "DEL", redis.delete(RedisKeys.todo_item(doc_id)), document_id=doc_id
                )
                for doc_id in document_ids
            ),
            return_exceptions=True,
        )

        failed: list[str] = []
        deleted: list[str] = []
        for doc_id, result in zip(document_ids, results):
            if isinstance(result, Exception):
                failed.append(doc_id)
            elif isinstance(result, BaseException):
                raise result
            else:
                deleted.append(doc_id)

        index_key = RedisKeys.todo_index(user_id)
        if not failed:
            await self._call(
                "ZREMRANGEBYSCORE",
                redis.zremrangebyscore(index_key, "-inf", "+inf"),
                user_id=user_id,
            )
            log.info("用户 Todo 已清空", user_id=user_id, count=len(deleted))
            return

        if deleted:
            await self._call("ZREM", redis.zrem(index_key, *deleted), user_id=user_id)
        log.error("用户 Todo 部分清空失败", user_id=user_id, failed_ids=failed)
        raise ClearError(user_id, failed)

    @_instrumented("clear_all")
    async def clear_all(self) -> None:
        """FLUSHALL 清空整个 Redis（含 ID 计数器）"""
        redis = await self._client()
        ok = await self._call("FLUSHALL", redis.flushall())
        if not ok:
            raise StoreError(f"FLUSHALL 未确认: {ok!r}")
        log.warning("Redis 已全部清空")
