from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-4o-mini"

    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "llama3.2"

    DEEPSEEK_API_KEY: Optional[str] = None
    DEEPSEEK_BASE_URL: str = "https://api.deepseek.com"
    DEEPSEEK_MODEL: str = "deepseek-chat"

    DEFAULT_LLM_PROVIDER: str = "openai"

    EMBEDDING_MODEL: str = "text-embedding-3-small"

    # 外部服务调用超时（秒）
    LLM_TIMEOUT_SECONDS: float = 10.0
    EMBEDDING_TIMEOUT_SECONDS: float = 5.0
    ENHANCEMENT_TIMEOUT_SECONDS: float = 30.0
    MAX_CONCURRENT_LLM_CALLS: int = 3

    # 查询增强配置
    DEFAULT_SEARCH_MODE: str = "balanced"
    ENABLE_INTELLIGENT_CLASSIFICATION: bool = True
    CLASSIFICATION_SENSITIVITY: str = "balanced"
    MINIMUM_QUERY_LENGTH: int = 3
    MAXIMUM_SIMPLE_QUERY_WORDS: int = 8
    FAST_PATH_CONFIDENCE_THRESHOLD: float = 0.7

    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
