"""
Todo 存储层异常体系

所有 Redis 命令失败在 TodoStore 内部被归类为下列最具体的一种再抛给调用方，
HTTP 层据此映射状态码（403 / 404 / 5xx），不会合并成单一的通用异常。
"""


class TodoStoreError(Exception):
    """存储层异常基类"""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class StoreConnectionError(TodoStoreError):
    """Redis 不可达或认证被拒绝，整个操作中止，不自动重试"""


class StoreError(TodoStoreError):
    """Redis 命令执行失败"""


class StoreTimeoutError(StoreError):
    """Redis 命令超时"""


class ParseError(TodoStoreError):
    """Redis 返回值无法解码为预期字段类型"""


class AuthorizationError(TodoStoreError):
    """调用方 user_id 与记录归属不一致"""

    def __init__(self, document_id: str, user_id: str):
        super().__init__(f"用户 {user_id} 无权访问 todo {document_id}")
        self.document_id = document_id
        self.user_id = user_id


class NotFoundError(TodoStoreError):
    """目标 document_id 不在对应索引中"""


class MissingRecordError(NotFoundError, ParseError):
    """document_id 对应的 Hash 记录不存在（既是未找到，也是无法解码）"""

    def __init__(self, document_id: str):
        super().__init__(f"todo {document_id} 不存在")
        self.document_id = document_id


class CreationError(TodoStoreError):
    """
    add 在 ID 已分配后写入失败。

    stage="hash"：Hash 记录未写入，只浪费了一个 ID；
    stage="index"：Hash 已写入但未加入用户索引，留下孤儿记录。
    """

    def __init__(
        self, document_id: str, stage: str, cause: Exception | None = None
    ):
        super().__init__(f"todo {document_id} 创建失败（{stage}）", cause=cause)
        self.document_id = document_id
        self.stage = stage


class OrphanRecordError(StoreError):
    """delete 已从索引移除，但 Hash 记录删除失败"""

    def __init__(self, document_id: str, cause: Exception | None = None):
        super().__init__(f"todo {document_id} 已移出索引，但记录删除失败", cause=cause)
        self.document_id = document_id


class ClearError(StoreError):
    """clear 时部分成员的 Hash 记录删除失败"""

    def __init__(self, user_id: str, failed_ids: list[str]):
        super().__init__(f"清空用户 {user_id} 时 {len(failed_ids)} 条记录删除失败")
        self.user_id = user_id
        self.failed_ids = failed_ids
