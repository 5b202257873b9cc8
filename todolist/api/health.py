"""
健康检查接口：探活 + Redis 连接状态
"""

import structlog
from fastapi import APIRouter, Depends

from todolist.api.deps import get_redis_connection
from todolist.cache.redis_client import RedisConnection
from todolist.todo.errors import StoreConnectionError

router = APIRouter(tags=["健康检查"])
log = structlog.get_logger()


@router.get("/health")
async def health_check(connection: RedisConnection = Depends(get_redis_connection)):
    """健康检查：校验 Redis 连接"""
    status = {"status": "ok", "redis": "ok"}

    try:
        await connection.ping()
    except StoreConnectionError as e:
        status["redis"] = f"error: {e}"
        status["status"] = "degraded"
        log.error("Redis 健康检查失败", error=str(e))

    return status
