"""
统一异常处理模块

提供查询增强管道的异常类层次结构：
1. 外部服务失败（LLM / Embedding）在各阶段内部捕获并降级
2. 响应解析失败同样视为服务失败
3. 配置错误（未知模式）在入口处直接抛出
"""
from typing import Optional, Dict, Any
from enum import Enum


class ErrorCategory(str, Enum):
    """错误类别"""
    EMBEDDING = "embedding"
    PARSING = "parsing"
    LLM = "llm"
    VALIDATION = "validation"
    SYSTEM = "system"


class BaseError(Exception):
    """
    基础异常类

    所有项目异常的基类，提供统一的错误信息结构
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        self.message = message
        self.category = category
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }
        if self.cause:
            result["cause"] = str(self.cause)
        return result

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class EmbeddingError(BaseError):
    """Embedding 服务调用失败或超时"""

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if model_name:
            details["model_name"] = model_name
        super().__init__(
            message=message,
            category=ErrorCategory.EMBEDDING,
            details=details,
            cause=cause,
        )


class LLMError(BaseError):
    """LLM 服务调用失败或超时"""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if provider:
            details["provider"] = provider
        if model:
            details["model"] = model
        if timeout is not None:
            details["timeout"] = timeout
        super().__init__(
            message=message,
            category=ErrorCategory.LLM,
            details=details,
            cause=cause,
        )


class ParsingError(BaseError):
    """LLM 响应无法解析"""

    def __init__(
        self,
        message: str,
        raw_content: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if raw_content is not None:
            details["raw_content"] = raw_content[:200]
        super().__init__(
            message=message,
            category=ErrorCategory.PARSING,
            details=details,
            cause=cause,
        )


class ConfigurationError(BaseError):
    """配置相关错误"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        if value is not None:
            details["value"] = str(value)[:100]
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            details=details,
            cause=cause,
        )
