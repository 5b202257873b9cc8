"""
FastAPI 依赖注入：从应用状态获取共享资源
"""

from fastapi import Request

from todolist.cache.redis_client import RedisConnection
from todolist.todo.store import TodoStore


def get_todo_store(request: Request) -> TodoStore:
    """lifespan 中创建的 TodoStore"""
    return request.app.state.todo_store


def get_redis_connection(request: Request) -> RedisConnection:
    return request.app.state.todo_store.connection
