"""
测试配置

提供测试所需的公共fixtures和配置
"""
import pytest
import json
import sys
import os
from unittest.mock import AsyncMock, Mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def make_scripted_llm(
    intent=None,
    related_terms=None,
    alternatives=None,
    refinement=None,
):
    """
    按提示词内容返回不同响应的模拟 LLM

    intent: dict | str | Exception
    related_terms: list[str] | Exception
    alternatives: dict[term, str] | Exception，缺省时生成 "<term> query"
    refinement: dict | str | Exception
    """
    def respond(value):
        if isinstance(value, Exception):
            raise value
        if isinstance(value, (dict, list)):
            return Mock(content=json.dumps(value))
        return Mock(content=value)

    async def ainvoke(prompt):
        if "query intent classifier" in prompt:
            return respond(intent if intent is not None else {
                "intent": "factual", "confidence": 0.9, "reasoning": "test",
            })
        if "query expansion expert" in prompt:
            if isinstance(related_terms, Exception):
                raise related_terms
            terms = related_terms if related_terms is not None else ["alpha", "beta", "gamma"]
            return Mock(content="\n".join(terms))
        if "related term" in prompt:
            if isinstance(alternatives, Exception):
                raise alternatives
            term = prompt.split('the related term "', 1)[1].split('"', 1)[0]
            mapping = alternatives or {}
            value = mapping.get(term, f"{term} query")
            return respond(value)
        if "Analyze the conversation context" in prompt:
            return respond(refinement if refinement is not None else {
                "refinedQuery": "refined query",
                "focusAreas": ["focus"],
                "exclusionTerms": [],
                "timeSensitivity": "medium",
                "sourcePreferences": ["docs"],
            })
        return Mock(content="")

    llm = Mock()
    llm.ainvoke = AsyncMock(side_effect=ainvoke)
    return llm


class ArrayLikeVector:
    """行为类似 numpy 数组的向量：可迭代，但不能直接做真值判断"""

    def __init__(self, values):
        self.values = list(values)

    def __iter__(self):
        return iter(self.values)

    def __len__(self):
        return len(self.values)

    def __bool__(self):
        raise ValueError("The truth value of an array with more than one element is ambiguous")


@pytest.fixture
def mock_llm():
    """模拟LLM客户端"""
    return make_scripted_llm()


@pytest.fixture
def failing_llm():
    """所有调用都失败的LLM"""
    llm = Mock()
    llm.ainvoke = AsyncMock(side_effect=RuntimeError("Service unavailable"))
    return llm


@pytest.fixture
def mock_embeddings():
    """模拟嵌入服务"""
    embeddings = Mock()
    embeddings.aembed_query = AsyncMock(return_value=[0.1] * 768)
    return embeddings


@pytest.fixture
def failing_embeddings():
    embeddings = Mock()
    embeddings.aembed_query = AsyncMock(side_effect=RuntimeError("Service unavailable"))
    return embeddings


@pytest.fixture
def model_client(mock_llm, mock_embeddings):
    from query_pipeline.langchain.services.model_client import ModelClient

    return ModelClient(
        llm=mock_llm,
        embeddings=mock_embeddings,
        llm_timeout=2.0,
        embedding_timeout=2.0,
        max_concurrent_calls=2,
    )


@pytest.fixture
def sample_history():
    from query_pipeline.langchain.routers.enhancement_types import ConversationTurn

    return [
        ConversationTurn(role="user", content="I am interested in learning programming"),
        ConversationTurn(role="assistant", content="Programming is a great skill to learn!"),
        ConversationTurn(role="user", content="Which language should I start with?"),
        ConversationTurn(role="assistant", content="Python is often recommended for beginners"),
        ConversationTurn(role="user", content="Tell me more about Python features"),
    ]
