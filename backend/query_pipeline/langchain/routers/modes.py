"""
搜索模式配置

三种模式在延迟与结果深度之间取舍，模式之间只在少量数值/开关字段上不同，
用查表实现。max_expanded_queries 与 context_analysis_depth 随
speed -> balanced -> quality 单调递增。
"""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Union

from query_pipeline.core.exceptions import ConfigurationError


class SearchMode(str, Enum):
    SPEED = "speed"
    BALANCED = "balanced"
    QUALITY = "quality"


@dataclass(frozen=True)
class ModeConfig:
    """查询增强配置"""
    max_expanded_queries: int = 5
    expansion_depth: str = "moderate"  # lightweight / moderate / deep
    context_analysis_depth: int = 5
    intent_classification_threshold: float = 0.7
    enable_semantic_expansion: bool = True
    enable_context_refinement: bool = True


MODE_CONFIGS = MappingProxyType({
    SearchMode.SPEED: ModeConfig(
        max_expanded_queries=1,
        expansion_depth="lightweight",
        context_analysis_depth=0,
        intent_classification_threshold=0.5,
        enable_semantic_expansion=False,
        enable_context_refinement=False,
    ),
    SearchMode.BALANCED: ModeConfig(
        max_expanded_queries=5,
        expansion_depth="moderate",
        context_analysis_depth=5,
        intent_classification_threshold=0.7,
        enable_semantic_expansion=True,
        enable_context_refinement=True,
    ),
    SearchMode.QUALITY: ModeConfig(
        max_expanded_queries=8,
        expansion_depth="deep",
        context_analysis_depth=10,
        intent_classification_threshold=0.8,
        enable_semantic_expansion=True,
        enable_context_refinement=True,
    ),
})


def resolve_mode(mode: Union[SearchMode, str]) -> SearchMode:
    """解析模式标识，未知模式直接抛出 ConfigurationError"""
    if isinstance(mode, SearchMode):
        return mode
    try:
        return SearchMode(str(mode).strip().lower())
    except ValueError as e:
        raise ConfigurationError(
            f"Unknown search mode: {mode!r}. Available: {[m.value for m in SearchMode]}",
            config_key="mode",
            value=mode,
            cause=e,
        ) from e


def get_mode_config(mode: Union[SearchMode, str]) -> ModeConfig:
    return MODE_CONFIGS[resolve_mode(mode)]
