"""
配置文件 - 项目配置管理
"""
import math
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://www.v2ex.com/api/v2/"
DEFAULT_CLASSIC_BASE_URL = "https://www.v2ex.com/api/"


def validate_timeout(value: Optional[float]) -> float:
    """超时必须是有限正数（inf / NaN 等同于不设上限）。"""
    if value is None or not math.isfinite(value) or value <= 0:
        raise ValueError("timeout must be a finite number greater than 0")
    return float(value)


class Settings(BaseSettings):
    """项目配置（环境变量前缀 V2EX_）"""

    # 认证配置
    token: Optional[str] = Field(default=None, description="V2EX Personal Access Token")

    # 接口地址
    base_url: str = Field(default=DEFAULT_BASE_URL)
    classic_base_url: str = Field(default=DEFAULT_CLASSIC_BASE_URL)

    # HTTP 配置
    timeout: float = Field(default=10.0, description="单次请求超时（秒）")
    user_agent: str = Field(default="v2ex-client/1.0")

    # 调试：开启请求/响应日志与控制台渲染
    debug: bool = Field(default=False)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_prefix="V2EX_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("token", mode="before")
    @classmethod
    def _blank_token_is_none(cls, v):
        """空字符串视为未配置。"""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("timeout")
    @classmethod
    def _finite_timeout(cls, v: float) -> float:
        return validate_timeout(v)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """获取全局配置（缓存）；测试中可调用 get_settings.cache_clear()。"""
    return Settings()
