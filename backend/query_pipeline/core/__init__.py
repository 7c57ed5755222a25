from .exceptions import (
    ErrorCategory,
    BaseError,
    EmbeddingError,
    LLMError,
    ParsingError,
    ConfigurationError,
)
from .logging_config import (
    setup_logging,
    OperationLogger,
    log_async_function_call,
)

__all__ = [
    "ErrorCategory",
    "BaseError",
    "EmbeddingError",
    "LLMError",
    "ParsingError",
    "ConfigurationError",
    "setup_logging",
    "OperationLogger",
    "log_async_function_call",
]
