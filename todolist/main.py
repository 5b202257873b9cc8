"""
FastAPI 应用主入口
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from todolist.api.error_handlers import register_exception_handlers
from todolist.api.health import router as health_router
from todolist.api.todos import router as todos_router
from todolist.cache.redis_client import RedisConnection
from todolist.config import get_settings
from todolist.observability.logging_config import setup_logging
from todolist.observability.metrics_middleware import MetricsMiddleware
from todolist.observability.request_logger import RequestLoggerMiddleware
from todolist.todo.store import TodoStore

settings = get_settings()

# 初始化日志（在 import 时就生效）
setup_logging(env=settings.ENV)
log = structlog.get_logger()


def create_app(connection: RedisConnection | None = None) -> FastAPI:
    """构建应用；测试可注入自定义 RedisConnection"""

    @asynccontextmanager
    async def lifespan(application: FastAPI):
        """应用生命周期：启动时预检 Redis，关闭时释放连接"""
        log.info("应用启动", env=settings.ENV, app=settings.APP_NAME)

        store = TodoStore(connection or RedisConnection(settings))
        # Fail Fast：Redis 不可用时拒绝启动
        await store.connection.ensure_connected()
        application.state.todo_store = store

        yield

        await store.connection.aclose()
        log.info("应用关闭，资源已释放")

    application = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )

    # ── 中间件（执行顺序：从下往上注册，从上往下执行） ──
    application.add_middleware(RequestLoggerMiddleware)
    application.add_middleware(MetricsMiddleware)

    register_exception_handlers(application)

    # ── Prometheus 指标端点 ──
    application.mount("/metrics", make_asgi_app())

    # ── 路由注册 ──
    application.include_router(health_router)
    application.include_router(todos_router)

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("todolist.main:app", host="0.0.0.0", port=settings.APP_PORT)
