"""
快速查询分类器

不调用任何外部服务，按固定规则判断查询是否需要完整增强流程。
漏判（跳过了本该增强的查询）的代价高于误判（增强了简单查询），
因此所有缺乏明确证据的分支都倾向于增强。
"""
from typing import List, Optional, Sequence
import logging

from query_pipeline.config import settings
from .enhancement_types import ClassificationResult, ClassificationStats
from .patterns import (
    SIMPLE_QUESTION_PATTERNS,
    COMPLEX_KEYWORDS,
    FACTUAL_INDICATORS,
    COMPARATIVE_PATTERNS,
    OPINION_PATTERNS,
    RESEARCH_PATTERNS,
    contains_keyword,
    contains_word_prefix,
    matches_any,
)

logger = logging.getLogger(__name__)

LONG_QUERY_WORDS = 15


class QueryClassifier:
    """
    查询复杂度分类器

    规则按顺序求值，首个命中的规则决定结果：
    1. 过短查询 -> 增强 (0.9)
    2. 简单疑问句 + 短 + 事实类词 + 无复杂关键词 -> 快速路径 (0.9)
    3. 复杂关键词 / 比较 / 观点 / 研究模式 / 长查询 -> 增强 (0.8)
    4. 简单疑问句但无事实类词 -> 增强 (0.6)
    5. 短且无复杂关键词 -> 快速路径 (0.7)
    6. 其余 -> 增强 (0.5)
    """

    def __init__(
        self,
        minimum_query_length: Optional[int] = None,
        maximum_simple_query_words: Optional[int] = None,
        long_query_words: int = LONG_QUERY_WORDS,
    ):
        self.minimum_query_length = (
            minimum_query_length if minimum_query_length is not None else settings.MINIMUM_QUERY_LENGTH
        )
        self.maximum_simple_query_words = (
            maximum_simple_query_words
            if maximum_simple_query_words is not None
            else settings.MAXIMUM_SIMPLE_QUERY_WORDS
        )
        self.long_query_words = long_query_words

    def classify(self, query: str) -> ClassificationResult:
        normalized = (query or "").strip().lower()

        if len(normalized) < self.minimum_query_length:
            return ClassificationResult(
                needs_enhancement=True,
                confidence=0.9,
                reason="Query too short (insufficient length), default to enhancement",
            )

        is_simple_question = matches_any(normalized, SIMPLE_QUESTION_PATTERNS)
        has_complex_keywords = contains_keyword(normalized, COMPLEX_KEYWORDS)
        word_count = len(normalized.split())
        is_short = word_count <= self.maximum_simple_query_words
        is_long = word_count > self.long_query_words
        has_factual_indicators = contains_word_prefix(normalized, FACTUAL_INDICATORS)
        has_comparative = matches_any(normalized, COMPARATIVE_PATTERNS)
        has_opinion = matches_any(normalized, OPINION_PATTERNS)
        has_research = matches_any(normalized, RESEARCH_PATTERNS)

        if is_simple_question and is_short and has_factual_indicators and not has_complex_keywords:
            return ClassificationResult(
                needs_enhancement=False,
                confidence=0.9,
                reason="Simple factual question with clear indicators",
            )

        if has_complex_keywords or has_comparative or has_opinion or has_research or is_long:
            signals = []
            if has_comparative:
                signals.append("comparative pattern")
            if has_opinion:
                signals.append("opinion pattern")
            if has_research:
                signals.append("research pattern")
            if has_complex_keywords:
                signals.append("complex keywords")
            if is_long:
                signals.append(f"long query ({word_count} words)")
            return ClassificationResult(
                needs_enhancement=True,
                confidence=0.8,
                reason=f"Contains {', '.join(signals)}",
            )

        if is_simple_question and not has_factual_indicators:
            return ClassificationResult(
                needs_enhancement=True,
                confidence=0.6,
                reason="Simple question but lacks clear factual indicators",
            )

        if is_short and not has_complex_keywords:
            return ClassificationResult(
                needs_enhancement=False,
                confidence=0.7,
                reason="Short query without complex keywords",
            )

        return ClassificationResult(
            needs_enhancement=True,
            confidence=0.5,
            reason="Default to enhancement for safety",
        )

    def get_classification_stats(self, queries: Sequence[str]) -> ClassificationStats:
        """批量分类统计"""
        if not queries:
            return ClassificationStats()

        results: List[ClassificationResult] = [self.classify(q) for q in queries]
        simple = sum(1 for r in results if not r.needs_enhancement)

        return ClassificationStats(
            total=len(results),
            simple=simple,
            complex=len(results) - simple,
            average_confidence=sum(r.confidence for r in results) / len(results),
        )


query_classifier = QueryClassifier()
