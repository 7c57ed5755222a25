from typing import Any, Iterable, List, Optional
import logging
import math

from query_pipeline.core.exceptions import BaseError, ParsingError
from query_pipeline.langchain.services.model_client import ModelClient, parse_json_response
from .enhancement_types import ConversationTurn, IntentResult, QueryIntent, normalize_history
from .patterns import INTENT_KEYWORDS, contains_term

logger = logging.getLogger(__name__)

INTENT_HISTORY_TURNS = 3


class IntentClassifier:
    """
    意图分类器

    1. LLM 语义分类（严格 JSON 输出）
    2. LLM 不可用、超时或返回无法解析时，回退到关键词计分
    """

    INTENT_DESCRIPTIONS = {
        QueryIntent.FACTUAL: "Seeking factual information, definitions, data",
        QueryIntent.INSTRUCTIONAL: "How-to guides, tutorials, step-by-step instructions",
        QueryIntent.OPINION: "Seeking opinions, reviews, personal perspectives",
        QueryIntent.COMPARATIVE: "Comparing options, pros/cons, alternatives",
        QueryIntent.EXPLANATORY: "Understanding concepts, explanations, educational content",
        QueryIntent.NEWS: "Recent information, current events, updates",
        QueryIntent.ACADEMIC: "Research-oriented, scholarly, technical information",
        QueryIntent.COMMERCIAL: "Product/service related, shopping, business",
    }

    def __init__(self, model_client: Optional[ModelClient] = None):
        self.model_client = model_client or ModelClient()

    async def classify_intent(
        self,
        query: str,
        history: Optional[Iterable[Any]] = None,
        threshold: Optional[float] = None,
    ) -> IntentResult:
        """
        分类查询意图

        threshold: LLM 置信度低于该值时与关键词结果对比，取置信度更高者
        """
        turns = normalize_history(history)

        if not self.model_client.has_llm:
            return self.fallback_classify(query)

        try:
            result = await self._llm_classify(query, turns)
        except BaseError as e:
            logger.warning(f"Intent classification fell back to keywords: {e}")
            return self.fallback_classify(query)

        if threshold is not None and result.confidence < threshold:
            fallback = self.fallback_classify(query)
            if fallback.confidence > result.confidence:
                logger.debug(
                    f"LLM intent {result.intent.value} ({result.confidence:.2f}) below threshold "
                    f"{threshold}, using keyword intent {fallback.intent.value}"
                )
                return fallback

        return result

    def fallback_classify(self, query: str) -> IntentResult:
        """关键词计分，平票时按类别固定顺序取靠前者"""
        lower_query = (query or "").lower()

        best_intent = QueryIntent.FACTUAL
        best_score = 0
        for intent_name, keywords in INTENT_KEYWORDS:
            score = sum(1 for keyword in keywords if contains_term(lower_query, keyword))
            if score > best_score:
                best_score = score
                best_intent = QueryIntent(intent_name)

        return IntentResult(
            intent=best_intent,
            confidence=min(best_score * 0.3, 1.0),
            reasoning=f"Keyword fallback matched {best_score} {best_intent.value} keyword(s)",
            from_fallback=True,
        )

    def _build_prompt(self, query: str, history: List[ConversationTurn]) -> str:
        history_text = "\n".join(
            turn.format() for turn in history[-INTENT_HISTORY_TURNS:]
        ) or "No chat history"
        categories = "\n".join(
            f"- {intent.value}: {description}"
            for intent, description in self.INTENT_DESCRIPTIONS.items()
        )

        return f"""You are a query intent classifier. Analyze the following query and determine its primary intent category.

Query: "{query}"

Chat History (if available):
{history_text}

Intent Categories:
{categories}

Provide your response in JSON format:
{{
    "intent": "intent_category",
    "confidence": 0.0-1.0,
    "reasoning": "Brief explanation of your classification"
}}

Return only the JSON, nothing else."""

    async def _llm_classify(self, query: str, history: List[ConversationTurn]) -> IntentResult:
        content = await self.model_client.complete(self._build_prompt(query, history))
        result = parse_json_response(content)

        try:
            intent = QueryIntent(str(result.get("intent", "")).strip().lower())
        except ValueError as e:
            raise ParsingError(
                f"Unknown intent label: {result.get('intent')!r}",
                raw_content=content,
                cause=e,
            ) from e

        try:
            confidence = float(result.get("confidence", 0.5))
        except (TypeError, ValueError) as e:
            raise ParsingError("Invalid intent confidence", raw_content=content, cause=e) from e
        if math.isnan(confidence):
            raise ParsingError("Invalid intent confidence", raw_content=content)

        return IntentResult(
            intent=intent,
            confidence=min(max(confidence, 0.0), 1.0),
            reasoning=str(result.get("reasoning", "")),
        )
