"""
查询增强编排器测试

测试范围：
1. 完整流程的结果组装
2. 上下文词 / 语义词提取
3. 快速路径
4. 外部服务失败时整体不抛异常
"""
import pytest
from unittest.mock import AsyncMock, Mock
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from query_pipeline.langchain.routers.query_enhancer import QueryEnhancer, extract_terms
from query_pipeline.langchain.routers.enhancement_types import QueryIntent
from query_pipeline.langchain.routers.modes import SearchMode, get_mode_config
from conftest import ArrayLikeVector, make_scripted_llm


class TestEnhanceQuery:
    """完整流程测试"""

    @pytest.mark.asyncio
    async def test_full_pipeline(self, mock_embeddings, sample_history):
        llm = make_scripted_llm(
            intent={"intent": "instructional", "confidence": 0.9},
            related_terms=["python tutorials", "coding courses"],
        )
        enhancer = QueryEnhancer(llm=llm, embeddings=mock_embeddings)

        result = await enhancer.enhance_query(
            "What are the best resources for learning Python?", sample_history
        )

        assert result.original_query == "What are the best resources for learning Python?"
        assert result.expanded_queries == [
            "What are the best resources for learning Python?",
            "python tutorials query",
            "coding courses query",
        ]
        assert result.intent == QueryIntent.INSTRUCTIONAL
        assert result.confidence == 0.9
        assert result.context_terms[:3] == ["interested", "learning", "programming"]
        assert len(result.context_terms) == 8
        assert len(result.semantic_terms) <= 10

    @pytest.mark.asyncio
    async def test_refinement_receives_detected_intent(self, mock_embeddings, sample_history):
        llm = make_scripted_llm(intent={"intent": "academic", "confidence": 0.95})
        enhancer = QueryEnhancer(llm=llm, embeddings=mock_embeddings)

        expansion, refinement = await enhancer.enhance_query_with_refinement(
            "neural network papers", sample_history
        )

        refine_prompts = [
            call[0][0] for call in llm.ainvoke.call_args_list
            if "Analyze the conversation context" in call[0][0]
        ]
        assert len(refine_prompts) == 1
        assert "Detected Intent: academic" in refine_prompts[0]
        assert refinement.refined_query == "refined query"
        assert expansion.intent == QueryIntent.ACADEMIC

    @pytest.mark.asyncio
    async def test_context_terms_respect_depth_limit(self, mock_llm, mock_embeddings):
        history = [f"Message {i + 1}: This is a test message about various topics." for i in range(20)]
        enhancer = QueryEnhancer(llm=mock_llm, embeddings=mock_embeddings)

        result = await enhancer.enhance_query("What is the weather today?", history)

        assert len(result.context_terms) <= 8
        assert "message" in result.context_terms
        assert "topics" in result.context_terms

    @pytest.mark.asyncio
    async def test_config_overrides(self, mock_llm, mock_embeddings):
        enhancer = QueryEnhancer(
            llm=mock_llm,
            embeddings=mock_embeddings,
            max_expanded_queries=2,
            expansion_depth="lightweight",
            context_analysis_depth=2,
            enable_semantic_expansion=False,
        )

        result = await enhancer.enhance_query("Test query")

        assert result.expanded_queries == ["Test query"]
        assert enhancer.config.max_expanded_queries == 2

    @pytest.mark.asyncio
    async def test_for_mode_uses_mode_config(self, mock_llm, mock_embeddings):
        enhancer = QueryEnhancer.for_mode("quality", llm=mock_llm, embeddings=mock_embeddings)

        assert enhancer.config == get_mode_config(SearchMode.QUALITY)
        assert QueryEnhancer.get_mode_config("speed").max_expanded_queries == 1


class TestTotality:
    """不抛异常测试"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", " ", "iPhone vs Android", "x" * 500])
    async def test_all_services_failing(self, failing_llm, failing_embeddings, query):
        enhancer = QueryEnhancer(llm=failing_llm, embeddings=failing_embeddings)

        result = await enhancer.enhance_query(query, [])

        assert result.expanded_queries == [query]
        assert result.original_query == query

    @pytest.mark.asyncio
    async def test_no_services_at_all(self):
        enhancer = QueryEnhancer()

        result = await enhancer.enhance_query("iPhone vs Android")

        assert result.expanded_queries == ["iPhone vs Android"]
        assert result.intent == QueryIntent.COMPARATIVE

    @pytest.mark.asyncio
    async def test_array_valued_embedding(self):
        llm = make_scripted_llm(intent={"intent": "comparative", "confidence": 0.9})
        embeddings = Mock()
        embeddings.aembed_query = AsyncMock(return_value=ArrayLikeVector([0.1, 0.2, 0.3]))
        enhancer = QueryEnhancer.for_mode("balanced", llm=llm, embeddings=embeddings)

        result = await enhancer.enhance_query("iPhone vs Android")

        assert result.expanded_queries[0] == "iPhone vs Android"
        assert "alpha query" in result.expanded_queries
        assert result.intent == QueryIntent.COMPARATIVE

    @pytest.mark.asyncio
    async def test_embedding_failure_keeps_original(self, mock_llm, failing_embeddings):
        enhancer = QueryEnhancer(llm=mock_llm, embeddings=failing_embeddings)

        result = await enhancer.enhance_query("Test query")

        assert "Test query" in result.expanded_queries


class TestSpeedVariant:
    """快速路径测试"""

    @pytest.mark.asyncio
    async def test_no_external_calls(self, mock_llm, mock_embeddings):
        enhancer = QueryEnhancer(llm=mock_llm, embeddings=mock_embeddings)

        result = await enhancer.enhance_query_speed("What is the capital of France?")

        assert result.expanded_queries == ["What is the capital of France?"]
        assert result.intent == QueryIntent.FACTUAL
        assert result.confidence == 0.8
        assert result.semantic_terms == ["capital", "france"]
        mock_llm.ainvoke.assert_not_called()
        mock_embeddings.aembed_query.assert_not_called()

    @pytest.mark.asyncio
    async def test_context_terms_from_history(self, sample_history):
        enhancer = QueryEnhancer()

        result = await enhancer.enhance_query_speed("And Rust?", sample_history)

        assert "programming" in result.context_terms

    @pytest.mark.asyncio
    async def test_speed_config_consults_no_history(self, sample_history):
        enhancer = QueryEnhancer(config=get_mode_config("speed"))

        result = await enhancer.enhance_query_speed("And Rust?", sample_history)

        assert result.context_terms == []


class TestExtractTerms:
    """词提取测试"""

    def test_filters_short_and_stop_words(self):
        terms = extract_terms(["What is the speed of light in vacuum?"], 10)

        assert terms == ["speed", "light", "vacuum"]

    def test_first_seen_order_and_limit(self):
        terms = extract_terms(["alpha beta gamma", "beta delta epsilon zeta"], 4)

        assert terms == ["alpha", "beta", "gamma", "delta"]
