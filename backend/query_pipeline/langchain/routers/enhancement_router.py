"""
查询增强路由

调用方入口：根据模式与快速分类结果选择快速路径或完整增强流程。

- speed 模式：直接走快速路径
- 其他模式：先做规则分类，简单查询走快速路径，其余走完整流程
- 整体有时间预算，超时或意外错误时返回快速路径结果，调用方不会收到异常
- 未知模式属于调用方的编程错误，进入管道前直接抛出 ConfigurationError
"""
from typing import Any, Iterable, List, Optional, Union
import asyncio
import logging

from query_pipeline.config import settings
from query_pipeline.core.exceptions import ConfigurationError
from query_pipeline.langchain.services.model_client import ModelClient
from query_pipeline.langchain.tracing import (
    end_enhancement_trace,
    start_enhancement_trace,
    trace_step,
)
from .enhancement_types import (
    ClassificationResult,
    ConversationTurn,
    EnhancedQuery,
    normalize_history,
)
from .modes import ModeConfig, SearchMode, get_mode_config, resolve_mode
from .query_classifier import QueryClassifier
from .query_enhancer import QueryEnhancer

logger = logging.getLogger(__name__)

SENSITIVITY_OFFSETS = {
    "conservative": 0.1,
    "balanced": 0.0,
    "aggressive": -0.1,
}


class EnhancementRouter:
    """查询增强路由器"""

    def __init__(
        self,
        llm: Optional[Any] = None,
        embeddings: Optional[Any] = None,
        model_client: Optional[ModelClient] = None,
        classifier: Optional[QueryClassifier] = None,
        enable_intelligent_classification: Optional[bool] = None,
        classification_sensitivity: Optional[str] = None,
        fast_path_confidence_threshold: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.model_client = model_client or ModelClient(llm=llm, embeddings=embeddings)
        self.enhancer = QueryEnhancer(model_client=self.model_client)
        self.classifier = classifier or QueryClassifier()

        self.enable_intelligent_classification = (
            enable_intelligent_classification
            if enable_intelligent_classification is not None
            else settings.ENABLE_INTELLIGENT_CLASSIFICATION
        )
        self.timeout = timeout if timeout is not None else settings.ENHANCEMENT_TIMEOUT_SECONDS

        sensitivity = (classification_sensitivity or settings.CLASSIFICATION_SENSITIVITY).lower()
        if sensitivity not in SENSITIVITY_OFFSETS:
            raise ConfigurationError(
                f"Unknown classification sensitivity: {sensitivity!r}. "
                f"Available: {list(SENSITIVITY_OFFSETS)}",
                config_key="classification_sensitivity",
                value=sensitivity,
            )
        self.classification_sensitivity = sensitivity

        base_threshold = (
            fast_path_confidence_threshold
            if fast_path_confidence_threshold is not None
            else settings.FAST_PATH_CONFIDENCE_THRESHOLD
        )
        self.fast_path_threshold = min(max(base_threshold + SENSITIVITY_OFFSETS[sensitivity], 0.0), 1.0)

    async def enhance(
        self,
        query: str,
        history: Optional[Iterable[Any]] = None,
        mode: Union[SearchMode, str, None] = None,
    ) -> EnhancedQuery:
        """
        增强查询

        Args:
            query: 用户查询
            history: 对话历史
            mode: speed / balanced / quality，默认取配置

        Returns:
            EnhancedQuery 对象
        """
        search_mode = resolve_mode(mode or settings.DEFAULT_SEARCH_MODE)
        config = get_mode_config(search_mode)
        query = query or ""
        turns = normalize_history(history)

        start_enhancement_trace(query, {"mode": search_mode.value})
        try:
            result = await asyncio.wait_for(
                self._enhance(query, turns, search_mode, config),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            end_enhancement_trace(error=f"time budget of {self.timeout}s exhausted")
            return await self._degraded(query, turns, search_mode, config)
        except Exception as e:
            logger.error(f"Query enhancement failed unexpectedly: {e}", exc_info=True)
            end_enhancement_trace(error=str(e))
            return await self._degraded(query, turns, search_mode, config)

        end_enhancement_trace()
        return result

    async def _enhance(
        self,
        query: str,
        turns: List[ConversationTurn],
        search_mode: SearchMode,
        config: ModeConfig,
    ) -> EnhancedQuery:
        if search_mode is SearchMode.SPEED:
            logger.debug("Speed mode, skipping enhancement")
            return await self._fast_path(query, turns, search_mode, config)

        classification = None
        if self.enable_intelligent_classification:
            with trace_step("classify", {"query": query}) as step:
                classification = self.classifier.classify(query)
                step.finish(classification.model_dump())

            if (
                not classification.needs_enhancement
                and classification.confidence >= self.fast_path_threshold
            ):
                logger.info(
                    f"Fast path for query ({classification.confidence:.2f}): {classification.reason}"
                )
                return await self._fast_path(query, turns, search_mode, config, classification)

            logger.info(f"Full enhancement ({search_mode.value}): {classification.reason}")

        expansion, refinement = await self.enhancer.enhance_query_with_refinement(
            query, turns, config
        )
        return EnhancedQuery(
            enhanced_query=refinement.refined_query or query,
            query_expansion=expansion,
            mode=search_mode.value,
            classification=classification,
            refinement=refinement,
            used_fast_path=False,
        )

    async def _fast_path(
        self,
        query: str,
        turns: List[ConversationTurn],
        search_mode: SearchMode,
        config: ModeConfig,
        classification: Optional[ClassificationResult] = None,
    ) -> EnhancedQuery:
        expansion = await self.enhancer.enhance_query_speed(query, turns, config)
        return EnhancedQuery(
            enhanced_query=query,
            query_expansion=expansion,
            mode=search_mode.value,
            classification=classification,
            used_fast_path=True,
        )

    async def _degraded(
        self,
        query: str,
        turns: List[ConversationTurn],
        search_mode: SearchMode,
        config: ModeConfig,
    ) -> EnhancedQuery:
        logger.warning(f"Returning original query without enhancement ({search_mode.value})")
        return await self._fast_path(query, turns, search_mode, config)
