from .enhancement_types import (
    QueryIntent,
    TimeSensitivity,
    ConversationTurn,
    ClassificationResult,
    ClassificationStats,
    IntentResult,
    ContextRefinement,
    QueryExpansion,
    EnhancedQuery,
    normalize_history,
)
from .query_classifier import QueryClassifier, query_classifier
from .intent_classifier import IntentClassifier
from .semantic_expander import SemanticExpander
from .context_refiner import ContextRefiner
from .modes import SearchMode, ModeConfig, MODE_CONFIGS, get_mode_config, resolve_mode
from .query_enhancer import QueryEnhancer, extract_terms
from .enhancement_router import EnhancementRouter

__all__ = [
    "QueryIntent",
    "TimeSensitivity",
    "ConversationTurn",
    "ClassificationResult",
    "ClassificationStats",
    "IntentResult",
    "ContextRefinement",
    "QueryExpansion",
    "EnhancedQuery",
    "normalize_history",
    "QueryClassifier",
    "query_classifier",
    "IntentClassifier",
    "SemanticExpander",
    "ContextRefiner",
    "SearchMode",
    "ModeConfig",
    "MODE_CONFIGS",
    "get_mode_config",
    "resolve_mode",
    "QueryEnhancer",
    "extract_terms",
    "EnhancementRouter",
]
