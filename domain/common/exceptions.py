"""领域层业务异常定义，供领域与基础设施使用。

基础设施层（API 客户端）的所有错误都从这里派生，调用方只需捕获 BusinessException。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import ErrorCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class ConfigurationError(BusinessException):
    """本地配置缺失（例如需要认证的调用没有可用的 token）"""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(
            code=ErrorCode.CONFIGURATION_ERROR,
            message=message,
            error_type="ConfigurationError",
            field=field,
        )
