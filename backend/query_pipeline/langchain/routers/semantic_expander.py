"""
语义查询扩展

功能：
1. 校验查询向量可用
2. 由 LLM 生成语义相关词
3. 为每个相关词生成一条替代查询（受并发上限约束）
4. 去重并按模式上限截断，原始查询始终位于首位

扩展是尽力而为的：向量或相关词生成失败时返回 [query]，不向上抛出异常
"""
from typing import List, Optional
import asyncio
import logging
import re

from query_pipeline.core.exceptions import BaseError
from query_pipeline.langchain.services.model_client import ModelClient
from .modes import ModeConfig

logger = logging.getLogger(__name__)

_LIST_MARKER_RE = re.compile(r"^\s*(?:[-*•]+|\d+[.)])\s*")

RELATED_TERM_RANGES = {
    "lightweight": "5-8",
    "moderate": "10-15",
    "deep": "15-20",
}


class SemanticExpander:
    """语义扩展器"""

    def __init__(
        self,
        model_client: Optional[ModelClient] = None,
        config: Optional[ModeConfig] = None,
    ):
        self.model_client = model_client or ModelClient()
        self.config = config or ModeConfig()

    async def expand_query_semantically(
        self,
        query: str,
        config: Optional[ModeConfig] = None,
    ) -> List[str]:
        config = config or self.config

        if not config.enable_semantic_expansion or config.max_expanded_queries <= 1:
            return [query]

        if not self.model_client.has_embeddings:
            logger.debug("No embedding service configured, skipping semantic expansion")
            return [query]

        try:
            await self.model_client.embed(query)
            related_terms = await self._generate_related_terms(query, config)
        except BaseError as e:
            logger.warning(f"Semantic expansion failed, using original query: {e}")
            return [query]

        if not related_terms:
            return [query]

        terms = related_terms[:config.max_expanded_queries - 1]
        limiter = self.model_client.new_call_limiter()
        alternatives = await asyncio.gather(*[
            self._generate_alternative_query(query, term, limiter)
            for term in terms
        ])

        expanded_queries = [query]
        seen = {query.strip().lower()}
        for alternative in alternatives:
            if not alternative:
                continue
            key = alternative.strip().lower()
            if key in seen:
                continue
            seen.add(key)
            expanded_queries.append(alternative)

        logger.debug(
            f"Expanded query into {len(expanded_queries)} variants "
            f"from {len(related_terms)} related terms"
        )
        return expanded_queries[:config.max_expanded_queries]

    async def _generate_related_terms(self, query: str, config: ModeConfig) -> List[str]:
        term_range = RELATED_TERM_RANGES.get(config.expansion_depth, "10-15")
        prompt = f"""You are a query expansion expert. Given the query "{query}", generate {term_range} semantically related terms and phrases that could help improve search results.

Focus on:
- Synonyms and related concepts
- Technical terms and jargon
- Broader and narrower terms
- Alternative phrasings

Return only the terms/phrases, one per line."""

        content = await self.model_client.complete(prompt)
        return parse_term_lines(content, exclude=query)

    async def _generate_alternative_query(
        self,
        query: str,
        term: str,
        limiter: asyncio.Semaphore,
    ) -> Optional[str]:
        prompt = f"""Given the original query "{query}" and the related term "{term}", create a new query that incorporates this term naturally.

Return only the new query, nothing else."""

        async with limiter:
            try:
                content = await self.model_client.complete(prompt)
            except BaseError as e:
                logger.debug(f"Alternative query for term '{term}' dropped: {e}")
                return None

        lines = [line for line in content.splitlines() if line.strip()]
        if not lines:
            return None
        alternative = lines[0].strip().strip('"').strip("'").strip()
        if not alternative or alternative == query:
            return None
        return alternative


def parse_term_lines(content: str, exclude: Optional[str] = None) -> List[str]:
    """解析换行分隔的相关词列表，去掉列表符号、空行和重复项"""
    excluded = (exclude or "").strip().lower()
    terms = []
    seen = set()
    for line in (content or "").splitlines():
        term = _LIST_MARKER_RE.sub("", line).strip().strip('"').strip("'").strip()
        key = term.lower()
        if not term or key == excluded or key in seen:
            continue
        seen.add(key)
        terms.append(term)
    return terms
