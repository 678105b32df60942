"""TaskTodo 异常体系

Store / Service 层只抛出这里定义的类型化异常，
由 gateway 的异常处理器统一映射为 HTTP 状态码。
"""


class TaskTodoError(Exception):
    """TaskTodo 基础异常"""

    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述（会返回给客户端，不得包含内部细节）
            recoverable: 调用方是否可以安全重试
        """
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable


class FieldError:
    """单个字段的校验错误"""

    __slots__ = ("field", "message")

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class ValidationFailedError(TaskTodoError):
    """输入不合法，不会产生任何写入"""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        details: list[FieldError] | None = None,
    ) -> None:
        super().__init__(message, recoverable=False)
        self.details = details or []


class AuthenticationError(TaskTodoError):
    """凭证缺失/无效/过期，或用户名密码错误

    对外统一表现，不区分"账号不存在"和"密码错误"。
    """

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Unauthorized", code: str | None = None) -> None:
        super().__init__(message, recoverable=False)
        if code is not None:
            self.code = code


class NotFoundError(TaskTodoError):
    """资源不存在或不属于调用者（两者对外不可区分）"""

    code = "TASK_NOT_FOUND"

    def __init__(self, resource_id: str) -> None:
        super().__init__(f"Task with id {resource_id} does not exist")
        self.resource_id = resource_id


class ConflictError(TaskTodoError):
    """唯一性冲突（如邮箱已被注册）"""

    code = "EMAIL_IN_USE"

    def __init__(self, message: str = "Email already in use") -> None:
        super().__init__(message, recoverable=False)


class PersistenceError(TaskTodoError):
    """持久层不可用或事务提交失败

    抛出前事务已回滚，调用方可安全重试。
    """

    code = "STORE_UNAVAILABLE"

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, recoverable=True)
        self.original_error = original_error
