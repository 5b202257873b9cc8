"""
Todo 数据模型

TodoItem 为应用层记录；TodoCreate / TodoUpdate 为 HTTP 请求体。
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TodoItem(BaseModel):
    """单个 Todo 条目"""

    model_config = ConfigDict(frozen=True)

    document_id: str
    user_id: str
    title: str
    order: int = 0
    completed: bool = False

    @field_validator("document_id", mode="before")
    @classmethod
    def coerce_id_to_str(cls, v: object) -> str:
        """INCR 返回整数，统一转为字符串"""
        return str(v)


class TodoCreate(BaseModel):
    """新建请求体"""

    title: str = Field(min_length=1)
    order: int = 0
    completed: bool = False
    user_id: str | None = None


class TodoUpdate(BaseModel):
    """部分更新请求体：未传的字段保持不变"""

    title: str | None = Field(default=None, min_length=1)
    order: int | None = None
    completed: bool | None = None
    user_id: str | None = None


class TodoCount(BaseModel):
    count: int
