from langchain_openai import ChatOpenAI, OpenAIEmbeddings
from langchain_core.language_models import BaseChatModel
from langchain_core.embeddings import Embeddings
from typing import List, Optional
from query_pipeline.config import settings
from query_pipeline.core.exceptions import ConfigurationError


def get_llm(
    provider: Optional[str] = None,
    model: Optional[str] = None,
    temperature: float = 0.0,
    **kwargs,
) -> BaseChatModel:
    provider = provider or settings.DEFAULT_LLM_PROVIDER

    configs = {
        "openai": {
            "model": model or settings.OPENAI_MODEL,
            "api_key": settings.OPENAI_API_KEY,
            "base_url": settings.OPENAI_BASE_URL,
        },
        "deepseek": {
            "model": model or settings.DEEPSEEK_MODEL,
            "api_key": settings.DEEPSEEK_API_KEY,
            "base_url": f"{settings.DEEPSEEK_BASE_URL}/v1",
        },
        "ollama": {
            "model": model or settings.OLLAMA_MODEL,
            "base_url": f"{settings.OLLAMA_BASE_URL}/v1",
            "api_key": "ollama",
        },
    }

    if provider not in configs:
        raise ConfigurationError(
            f"Unknown provider: {provider}. Available: {list(configs.keys())}",
            config_key="provider",
            value=provider,
        )
    if provider not in get_available_providers():
        raise ConfigurationError(
            f"Provider {provider} has no API key configured",
            config_key=f"{provider.upper()}_API_KEY",
        )

    config = configs[provider]
    config["temperature"] = temperature
    # 超时由 ModelClient 统一控制，客户端自身不做重试
    config.setdefault("max_retries", 0)
    config.update(kwargs)

    return ChatOpenAI(**config)


def get_embeddings(model: Optional[str] = None, **kwargs) -> Embeddings:
    config = {
        "model": model or settings.EMBEDDING_MODEL,
        "api_key": settings.OPENAI_API_KEY,
        "base_url": settings.OPENAI_BASE_URL,
        "max_retries": 0,
    }
    config.update(kwargs)

    return OpenAIEmbeddings(**config)


def get_available_providers() -> List[str]:
    """已配置凭据的提供方，ollama 为本地服务，始终可用"""
    providers = []
    if settings.OPENAI_API_KEY:
        providers.append("openai")
    if settings.DEEPSEEK_API_KEY:
        providers.append("deepseek")
    providers.append("ollama")
    return providers
