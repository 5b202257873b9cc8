"""
Redis 客户端：连接生命周期 + Key 统一管理 + FastAPI 依赖注入
"""

import asyncio

import redis.asyncio as aioredis
import structlog
from redis.exceptions import AuthenticationError, RedisError

from todolist.config import Settings, get_settings
from todolist.todo.errors import StoreConnectionError

log = structlog.get_logger()


class RedisKeys:
    """
    Redis Key 统一管理，避免散弹式硬编码
    命名规范：{业务域}:{标识}
    """

    # ── ID 计数器 ──
    @staticmethod
    def todo_id_counter() -> str:
        """全局自增计数器，INCR 分配 document_id，永不回收"""
        return "todoseq:id"

    # ── Todo 记录（Redis Hash） ──
    @staticmethod
    def todo_item(document_id: str) -> str:
        """单条 Todo 的 Hash Key（title / order / completed / userID）"""
        return f"todo:{document_id}"

    # ── 用户索引（Sorted Set） ──
    @staticmethod
    def todo_index(user_id: str) -> str:
        """用户 Todo 索引：member = document_id，score = order"""
        return f"todoset:{user_id}"


class RedisConnection:
    """
    单连接 Redis 资源，由 TodoStore 持有

    首次 ensure_connected() 时 PING 建连（配置了密码则同时完成 AUTH），
    之后直接复用，不重复认证。aclose() 后可再次建连。
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: aioredis.Redis | None = None,
    ):
        settings = settings or get_settings()
        self.host = settings.REDIS_HOST
        self.port = settings.REDIS_PORT
        self.password = settings.REDIS_PASSWORD or None
        self.db = settings.REDIS_DB
        self.timeout = settings.REDIS_COMMAND_TIMEOUT
        self._client = client
        self._connected = False
        self._lock = asyncio.Lock()

    def _build_client(self) -> aioredis.Redis:
        return aioredis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
            socket_timeout=self.timeout,
            socket_connect_timeout=self.timeout,
        )

    @property
    def connected(self) -> bool:
        return self._connected

    async def ensure_connected(self) -> aioredis.Redis:
        """幂等建连：已连接时立即返回"""
        if self._connected:
            return self._client

        async with self._lock:
            # 等锁期间其他协程可能已完成建连
            if self._connected:
                return self._client

            if self._client is None:
                self._client = self._build_client()

            try:
                await asyncio.wait_for(self._client.ping(), timeout=self.timeout)
            except AuthenticationError as e:
                log.error("Redis 认证失败", host=self.host, port=self.port)
                raise StoreConnectionError(f"Redis 认证失败: {e}", cause=e) from e
            except (RedisError, OSError, asyncio.TimeoutError) as e:
                log.error(
                    "Redis 连接失败", host=self.host, port=self.port, error=str(e)
                )
                raise StoreConnectionError(f"Redis 连接失败: {e}", cause=e) from e

            self._connected = True
            log.info("Redis 连接就绪", host=self.host, port=self.port, db=self.db)
            return self._client

    async def ping(self) -> bool:
        """健康检查用，失败抛 StoreConnectionError"""
        client = await self.ensure_connected()
        try:
            return bool(await asyncio.wait_for(client.ping(), timeout=self.timeout))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            raise StoreConnectionError(f"Redis PING 失败: {e}", cause=e) from e

    async def aclose(self) -> None:
        """释放连接，之后的 ensure_connected() 会重新建连"""
        if self._client is not None:
            await self._client.aclose()
            log.info("Redis 连接已关闭", host=self.host, port=self.port)
        self._client = None
        self._connected = False
