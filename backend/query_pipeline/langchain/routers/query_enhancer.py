"""
查询增强编排器

整合意图分类、语义扩展、上下文精炼，输出交给检索系统的 QueryExpansion。
各阶段自身保证不抛出异常，因此整条管道也不会抛出异常。
"""
from dataclasses import replace
from typing import Any, Iterable, List, Optional, Tuple, Union
import logging

from query_pipeline.core.logging_config import log_async_function_call
from query_pipeline.langchain.services.model_client import ModelClient
from query_pipeline.langchain.tracing import trace_step
from .context_refiner import ContextRefiner
from .enhancement_types import (
    ContextRefinement,
    ConversationTurn,
    QueryExpansion,
    QueryIntent,
    normalize_history,
)
from .intent_classifier import IntentClassifier
from .modes import ModeConfig, SearchMode, get_mode_config
from .patterns import is_stop_word, tokenize
from .semantic_expander import SemanticExpander

logger = logging.getLogger(__name__)

MAX_SEMANTIC_TERMS = 10
MAX_CONTEXT_TERMS = 8
FAST_PATH_CONFIDENCE = 0.8


class QueryEnhancer:
    """
    查询增强器

    完整流程：
    1. 意图分类
    2. 语义扩展
    3. 上下文精炼（使用上一步得到的意图）
    4. 提取语义词与上下文词
    """

    def __init__(
        self,
        llm: Optional[Any] = None,
        embeddings: Optional[Any] = None,
        config: Optional[ModeConfig] = None,
        model_client: Optional[ModelClient] = None,
        **overrides,
    ):
        self.model_client = model_client or ModelClient(llm=llm, embeddings=embeddings)
        config = config or ModeConfig()
        self.config = replace(config, **overrides) if overrides else config

        self.intent_classifier = IntentClassifier(self.model_client)
        self.semantic_expander = SemanticExpander(self.model_client, self.config)
        self.context_refiner = ContextRefiner(self.model_client, self.config)

    @classmethod
    def for_mode(
        cls,
        mode: Union[SearchMode, str],
        llm: Optional[Any] = None,
        embeddings: Optional[Any] = None,
        model_client: Optional[ModelClient] = None,
    ) -> "QueryEnhancer":
        return cls(
            llm=llm,
            embeddings=embeddings,
            config=get_mode_config(mode),
            model_client=model_client,
        )

    @staticmethod
    def get_mode_config(mode: Union[SearchMode, str]) -> ModeConfig:
        return get_mode_config(mode)

    async def enhance_query(
        self,
        query: str,
        history: Optional[Iterable[Any]] = None,
        config: Optional[ModeConfig] = None,
    ) -> QueryExpansion:
        expansion, _ = await self.enhance_query_with_refinement(query, history, config)
        return expansion

    @log_async_function_call(logger)
    async def enhance_query_with_refinement(
        self,
        query: str,
        history: Optional[Iterable[Any]] = None,
        config: Optional[ModeConfig] = None,
    ) -> Tuple[QueryExpansion, ContextRefinement]:
        """执行完整增强流程，同时返回上下文精炼结果"""
        config = config or self.config
        turns = normalize_history(history)

        with trace_step("intent", {"query": query, "history_turns": len(turns)}) as step:
            intent_result = await self.intent_classifier.classify_intent(
                query,
                turns,
                threshold=config.intent_classification_threshold,
            )
            step.finish({
                "intent": intent_result.intent.value,
                "confidence": intent_result.confidence,
                "fallback": intent_result.from_fallback,
            })

        with trace_step("expansion", {"query": query, "cap": config.max_expanded_queries}) as step:
            expanded_queries = await self.semantic_expander.expand_query_semantically(query, config)
            step.finish({"expanded_queries": expanded_queries})

        with trace_step("refinement", {"query": query, "intent": intent_result.intent.value}) as step:
            refinement = await self.context_refiner.refine_with_context(
                query, turns, intent_result.intent, config
            )
            step.finish({
                "refined_query": refinement.refined_query,
                "time_sensitivity": refinement.time_sensitivity.value,
            })

        expansion = QueryExpansion(
            original_query=query,
            expanded_queries=expanded_queries,
            semantic_terms=extract_terms(expanded_queries, MAX_SEMANTIC_TERMS),
            context_terms=self._context_terms(turns, config),
            intent=intent_result.intent,
            confidence=intent_result.confidence,
        )
        return expansion, refinement

    async def enhance_query_speed(
        self,
        query: str,
        history: Optional[Iterable[Any]] = None,
        config: Optional[ModeConfig] = None,
    ) -> QueryExpansion:
        """
        快速路径

        不调用任何外部服务，返回与完整流程结构相同的结果
        """
        config = config or self.config
        turns = normalize_history(history)

        return QueryExpansion(
            original_query=query,
            expanded_queries=[query],
            semantic_terms=extract_terms([query], MAX_SEMANTIC_TERMS),
            context_terms=self._context_terms(turns, config),
            intent=QueryIntent.FACTUAL,
            confidence=FAST_PATH_CONFIDENCE,
        )

    def _context_terms(self, turns: List[ConversationTurn], config: ModeConfig) -> List[str]:
        depth = config.context_analysis_depth
        if depth <= 0 or not turns:
            return []
        return extract_terms([turn.content for turn in turns[-depth:]], MAX_CONTEXT_TERMS)


def extract_terms(texts: Iterable[str], limit: int) -> List[str]:
    """提取长度大于 3 的非停用词，按首次出现顺序去重"""
    terms: List[str] = []
    seen = set()
    for text in texts:
        for word in tokenize(text or ""):
            if len(word) <= 3 or is_stop_word(word) or word in seen:
                continue
            seen.add(word)
            terms.append(word)
            if len(terms) >= limit:
                return terms
    return terms
