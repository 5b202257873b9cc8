"""
全局配置模块：通过 pydantic-settings 读取环境变量 / .env
"""

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """应用全局配置，从 .env 文件加载"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Redis ──
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str = ""  # 为空时跳过 AUTH
    REDIS_DB: int = 0
    REDIS_COMMAND_TIMEOUT: float = 5.0  # 单条命令超时（秒）

    # ── Todo ──
    TODO_DEFAULT_USER_ID: str = "default"  # 调用方未传 user_id 时使用

    # ── 应用 ──
    ENV: str = "development"  # development | production
    APP_NAME: str = "todolist"
    APP_PORT: int = 8000

    @field_validator("REDIS_PORT")
    @classmethod
    def _check_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"REDIS_PORT 超出范围: {v}")
        return v

    @field_validator("REDIS_COMMAND_TIMEOUT")
    @classmethod
    def _check_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("REDIS_COMMAND_TIMEOUT 必须大于 0")
        return v


@lru_cache
def get_settings() -> Settings:
    """单例获取配置（带缓存）"""
    return Settings()
