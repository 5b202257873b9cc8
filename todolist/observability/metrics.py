"""
Prometheus 指标定义

所有指标统一在此文件定义，中间件和业务代码按需引用。
"""

from prometheus_client import Counter, Histogram

# ── 请求级指标 ──

REQUEST_TOTAL = Counter(
    "todolist_request_total",
    "HTTP 请求总数",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "todolist_request_duration_ms",
    "HTTP 请求耗时（毫秒）",
    ["method", "endpoint"],
    buckets=[5, 10, 25, 50, 100, 200, 500, 1000, 5000],
)

# ── 存储层指标 ──

STORE_OP_TOTAL = Counter(
    "todolist_store_op_total",
    "TodoStore 操作总数",
    ["op", "outcome"],  # outcome: success / 异常类名
)

STORE_OP_DURATION = Histogram(
    "todolist_store_op_duration_ms",
    "TodoStore 操作耗时（毫秒）",
    ["op"],
    buckets=[1, 2, 5, 10, 25, 50, 100, 250, 1000, 5000],
)
