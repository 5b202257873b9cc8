"""
Todo REST 接口：TodoStore 的 HTTP 外壳

user_id 可通过 query 或请求体传入，缺省时由存储层落到默认用户。
"""

from fastapi import APIRouter, Depends, Response, status

from todolist.api.deps import get_todo_store
from todolist.todo.schemas import TodoCount, TodoCreate, TodoItem, TodoUpdate
from todolist.todo.store import TodoStore

router = APIRouter(prefix="/todos", tags=["Todo"])


@router.get("", response_model=list[TodoItem])
async def list_todos(user_id: str | None = None, store: TodoStore = Depends(get_todo_store)):
    """按 order 升序返回用户全部 Todo"""
    return await store.get_all(user_id)


@router.get("/count", response_model=TodoCount)
async def count_todos(user_id: str | None = None, store: TodoStore = Depends(get_todo_store)):
    return TodoCount(count=await store.count(user_id))


@router.get("/{document_id}", response_model=TodoItem)
async def get_todo(
    document_id: str, user_id: str | None = None, store: TodoStore = Depends(get_todo_store)
):
    return await store.get_one(document_id, user_id)


@router.post("", response_model=TodoItem, status_code=status.HTTP_201_CREATED)
async def create_todo(body: TodoCreate, store: TodoStore = Depends(get_todo_store)):
    return await store.add(
        title=body.title,
        order=body.order,
        completed=body.completed,
        user_id=body.user_id,
    )


@router.patch("/{document_id}", response_model=TodoItem)
async def update_todo(
    document_id: str,
    body: TodoUpdate,
    user_id: str | None = None,
    store: TodoStore = Depends(get_todo_store),
):
    """部分更新：请求体中未出现的字段保持不变"""
    return await store.update(
        document_id,
        user_id=body.user_id or user_id,
        title=body.title,
        order=body.order,
        completed=body.completed,
    )


# 须在 /{document_id} 之前注册
@router.delete("/all", status_code=status.HTTP_204_NO_CONTENT)
async def clear_store(store: TodoStore = Depends(get_todo_store)):
    """清空整个存储（含 ID 计数器）"""
    await store.clear_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_todo(
    document_id: str, user_id: str | None = None, store: TodoStore = Depends(get_todo_store)
):
    await store.delete(document_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_todos(user_id: str | None = None, store: TodoStore = Depends(get_todo_store)):
    """清空用户全部 Todo"""
    await store.clear(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
