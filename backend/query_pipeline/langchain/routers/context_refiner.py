from typing import Any, Iterable, List, Optional
import logging

from query_pipeline.core.exceptions import BaseError
from query_pipeline.langchain.services.model_client import ModelClient, parse_json_response
from .enhancement_types import (
    ContextRefinement,
    ConversationTurn,
    QueryIntent,
    TimeSensitivity,
    normalize_history,
)
from .modes import ModeConfig

logger = logging.getLogger(__name__)


class ContextRefiner:
    """
    上下文精炼器

    结合最近的对话轮次与已识别的意图，让 LLM 输出精炼后的查询、关注点、
    排除词和时效性。关闭、无历史或调用失败时原样返回查询。
    """

    def __init__(
        self,
        model_client: Optional[ModelClient] = None,
        config: Optional[ModeConfig] = None,
    ):
        self.model_client = model_client or ModelClient()
        self.config = config or ModeConfig()

    async def refine_with_context(
        self,
        query: str,
        history: Optional[Iterable[Any]],
        intent: QueryIntent,
        config: Optional[ModeConfig] = None,
    ) -> ContextRefinement:
        config = config or self.config
        turns = normalize_history(history)

        if (
            not config.enable_context_refinement
            or config.context_analysis_depth <= 0
            or not turns
        ):
            return ContextRefinement.passthrough(query)

        recent_turns = turns[-config.context_analysis_depth:]

        try:
            content = await self.model_client.complete(
                self._build_prompt(query, recent_turns, intent)
            )
            result = parse_json_response(content)
        except BaseError as e:
            logger.warning(f"Context refinement failed, passing query through: {e}")
            return ContextRefinement.passthrough(query)

        return self._to_refinement(query, result)

    def _build_prompt(
        self,
        query: str,
        history: List[ConversationTurn],
        intent: QueryIntent,
    ) -> str:
        history_text = "\n".join(turn.format() for turn in history)
        intent_value = intent.value if isinstance(intent, QueryIntent) else str(intent)

        return f"""Analyze the conversation context and refine the query "{query}" based on the chat history.

Chat History:
{history_text}

Detected Intent: {intent_value}

Provide your analysis in JSON format:
{{
    "refinedQuery": "Improved query incorporating context",
    "focusAreas": ["Key focus areas from context"],
    "exclusionTerms": ["Terms to exclude from search"],
    "timeSensitivity": "low|medium|high",
    "sourcePreferences": ["Preferred source types"]
}}

Return only the JSON, nothing else."""

    def _to_refinement(self, query: str, result: dict) -> ContextRefinement:
        refined_query = result.get("refinedQuery")
        if not isinstance(refined_query, str) or not refined_query.strip():
            refined_query = query

        try:
            time_sensitivity = TimeSensitivity(str(result.get("timeSensitivity", "low")).strip().lower())
        except ValueError:
            time_sensitivity = TimeSensitivity.LOW

        return ContextRefinement(
            refined_query=refined_query.strip(),
            focus_areas=_string_list(result.get("focusAreas")),
            exclusion_terms=_string_list(result.get("exclusionTerms")),
            time_sensitivity=time_sensitivity,
            source_preferences=_string_list(result.get("sourcePreferences")),
        )


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v).strip() for v in value if v is not None and str(v).strip()]
