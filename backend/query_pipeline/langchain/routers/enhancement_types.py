"""
查询增强共享数据类型

定义被分类器、扩展器、精炼器和编排器共享的数据类，降低模块间耦合
"""
from enum import Enum
from typing import Any, Iterable, List, Optional, Union
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field


class QueryIntent(str, Enum):
    FACTUAL = "factual"
    INSTRUCTIONAL = "instructional"
    OPINION = "opinion"
    COMPARATIVE = "comparative"
    EXPLANATORY = "explanatory"
    NEWS = "news"
    ACADEMIC = "academic"
    COMMERCIAL = "commercial"


class TimeSensitivity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class ConversationTurn:
    """对话轮次"""
    role: str  # "user" or "assistant"
    content: str

    def format(self) -> str:
        return f"{self.role}: {self.content}"


HistoryItem = Union[ConversationTurn, str, dict]


class ClassificationResult(BaseModel):
    """快速分类结果"""
    model_config = ConfigDict(frozen=True)

    needs_enhancement: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str


class ClassificationStats(BaseModel):
    total: int = 0
    simple: int = 0
    complex: int = 0
    average_confidence: float = 0.0


class IntentResult(BaseModel):
    intent: QueryIntent
    confidence: float = Field(ge=0.0, le=1.0)
    reasoning: str = ""
    from_fallback: bool = False


class ContextRefinement(BaseModel):
    """上下文精炼结果"""
    refined_query: str
    focus_areas: List[str] = Field(default_factory=list)
    exclusion_terms: List[str] = Field(default_factory=list)
    time_sensitivity: TimeSensitivity = TimeSensitivity.LOW
    source_preferences: List[str] = Field(default_factory=list)

    @classmethod
    def passthrough(cls, query: str) -> "ContextRefinement":
        return cls(refined_query=query)


class QueryExpansion(BaseModel):
    """交给检索系统的最终查询扩展结果"""
    original_query: str
    expanded_queries: List[str]
    semantic_terms: List[str] = Field(default_factory=list)
    context_terms: List[str] = Field(default_factory=list)
    intent: QueryIntent = QueryIntent.FACTUAL
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class EnhancedQuery(BaseModel):
    """面向调用方的增强结果"""
    enhanced_query: str
    query_expansion: QueryExpansion
    mode: str
    classification: Optional[ClassificationResult] = None
    refinement: Optional[ContextRefinement] = None
    used_fast_path: bool = False


def normalize_history(history: Optional[Iterable[Any]]) -> List[ConversationTurn]:
    """
    将各种形式的历史记录统一为 ConversationTurn 列表

    支持字符串、ConversationTurn、{"role", "content"} 字典，
    以及带 content 属性的消息对象（如 langchain BaseMessage）
    """
    turns: List[ConversationTurn] = []
    for item in history or []:
        if isinstance(item, ConversationTurn):
            turns.append(item)
        elif isinstance(item, str):
            turns.append(ConversationTurn(role="user", content=item))
        elif isinstance(item, dict):
            content = item.get("content")
            if content is None:
                continue
            turns.append(ConversationTurn(role=str(item.get("role", "user")), content=str(content)))
        elif hasattr(item, "content"):
            role = getattr(item, "role", None) or getattr(item, "type", None) or "user"
            turns.append(ConversationTurn(role=str(role), content=str(item.content)))
    return turns
