"""
Todo 字段编解码

Redis Hash 中所有字段都是字符串：order 存十进制字符串，completed 存字面量
"true" / "false"。编解码只在这里做，其他模块不得自行转换。
"""

from todolist.todo.errors import MissingRecordError, ParseError
from todolist.todo.schemas import TodoItem

# Hash field 名称
FIELD_TITLE = "title"
FIELD_ORDER = "order"
FIELD_COMPLETED = "completed"
FIELD_USER_ID = "userID"

# HMGET 读取顺序，decode_item 按此顺序解包
ITEM_FIELDS = (FIELD_TITLE, FIELD_ORDER, FIELD_COMPLETED, FIELD_USER_ID)


def encode_order(order: int) -> str:
    return str(int(order))


def decode_order(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ParseError(f"order 不是整数: {raw!r}", cause=e) from e


def encode_completed(completed: bool) -> str:
    return "true" if completed else "false"


def decode_completed(raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ParseError(f"completed 不是 true/false: {raw!r}")


def encode_item_fields(
    title: str, order: int, completed: bool, user_id: str
) -> dict[str, str]:
    """新建时写入的完整 Hash"""
    return {
        FIELD_TITLE: title,
        FIELD_ORDER: encode_order(order),
        FIELD_COMPLETED: encode_completed(completed),
        FIELD_USER_ID: user_id,
    }


def encode_partial_fields(
    title: str | None = None,
    order: int | None = None,
    completed: bool | None = None,
) -> dict[str, str]:
    """部分更新：只包含调用方提供的字段"""
    fields: dict[str, str] = {}
    if title is not None:
        fields[FIELD_TITLE] = title
    if order is not None:
        fields[FIELD_ORDER] = encode_order(order)
    if completed is not None:
        fields[FIELD_COMPLETED] = encode_completed(completed)
    return fields


def decode_item(document_id: str, values: list[str | None]) -> TodoItem:
    """
    将 HMGET 结果（按 ITEM_FIELDS 顺序）解码为 TodoItem。

    全部为空 → MissingRecordError；部分缺失或类型不符 → ParseError。
    """
    if len(values) != len(ITEM_FIELDS):
        raise ParseError(f"todo {document_id} 返回字段数不符: {len(values)}")

    if all(v is None for v in values):
        raise MissingRecordError(document_id)

    missing = [name for name, v in zip(ITEM_FIELDS, values) if v is None]
    if missing:
        raise ParseError(f"todo {document_id} 缺少字段: {', '.join(missing)}")

    title, order, completed, user_id = values
    return TodoItem(
        document_id=document_id,
        user_id=user_id,
        title=title,
        order=decode_order(order),
        completed=decode_completed(completed),
    )
