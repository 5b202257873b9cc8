"""
Todo 模块：按用户划分的任务列表持久化

TodoItem 以 Redis Hash 保存字段，以用户级 Sorted Set 维护归属与展示顺序，
全局计数器分配 document_id。TodoStore 位于 todolist.todo.store。
"""

from todolist.todo.errors import (
    AuthorizationError,
    ClearError,
    CreationError,
    MissingRecordError,
    NotFoundError,
    OrphanRecordError,
    ParseError,
    StoreConnectionError,
    StoreError,
    StoreTimeoutError,
    TodoStoreError,
)
from todolist.todo.schemas import TodoItem

__all__ = [
    "AuthorizationError",
    "ClearError",
    "CreationError",
    "MissingRecordError",
    "NotFoundError",
    "OrphanRecordError",
    "ParseError",
    "StoreConnectionError",
    "StoreError",
    "StoreTimeoutError",
    "TodoItem",
    "TodoStoreError",
]
