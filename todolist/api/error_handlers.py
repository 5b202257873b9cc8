"""
存储层异常 → HTTP 状态码映射

AuthorizationError→403，NotFoundError→404，连接失败→503，超时→504，其余→500。
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from todolist.todo.errors import (
    AuthorizationError,
    NotFoundError,
    StoreConnectionError,
    StoreTimeoutError,
    TodoStoreError,
)

log = structlog.get_logger()

# 按顺序匹配，子类须排在父类之前
_STATUS_MAP: list[tuple[type[TodoStoreError], int]] = [
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (StoreConnectionError, 503),
    (StoreTimeoutError, 504),
]


def status_for(exc: TodoStoreError) -> int:
    for exc_type, status in _STATUS_MAP:
        if isinstance(exc, exc_type):
            return status
    return 500


async def todo_store_error_handler(request: Request, exc: TodoStoreError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        log.error("存储层异常", path=request.url.path, error_type=type(exc).__name__, error=str(exc))
    return JSONResponse(
        status_code=status,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TodoStoreError, todo_store_error_handler)
