"""Client 异常体系

API 非 2xx 响应按状态码映射为以下类型。
"""


class ApiError(Exception):
    """API 调用基础异常"""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str = "",
        recoverable: bool = False,
    ) -> None:
        """
        Args:
            message: 服务端返回的错误描述
            status_code: HTTP 状态码（传输层失败时为 None）
            code: 服务端错误码
            recoverable: 是否可以安全重试
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.recoverable = recoverable


class ApiValidationError(ApiError):
    """400：输入不合法（含字段级信息）或 email 已被注册"""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        field_errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message, status_code=400, code=code)
        self.field_errors = field_errors or {}


class ApiAuthError(ApiError):
    """401：凭证无效或 token 缺失/过期"""

    def __init__(self, message: str, code: str = "UNAUTHORIZED") -> None:
        super().__init__(message, status_code=401, code=code)


class ApiNotFoundError(ApiError):
    """404：任务不存在（或不属于当前用户）"""

    def __init__(self, message: str, code: str = "TASK_NOT_FOUND") -> None:
        super().__init__(message, status_code=404, code=code)


class ApiServerError(ApiError):
    """5xx 或传输层失败"""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str = "INTERNAL_ERROR",
        retryable: bool = True,
    ) -> None:
        super().__init__(message, status_code=status_code, code=code, recoverable=retryable)

    @property
    def retryable(self) -> bool:
        return self.recoverable
