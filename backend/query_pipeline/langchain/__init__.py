from .llm import get_llm, get_embeddings
from .services import ModelClient
from .routers import EnhancementRouter, QueryEnhancer, QueryClassifier

__all__ = [
    "get_llm",
    "get_embeddings",
    "ModelClient",
    "EnhancementRouter",
    "QueryEnhancer",
    "QueryClassifier",
]
