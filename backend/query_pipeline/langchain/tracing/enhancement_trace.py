"""
查询增强链路追踪

记录单次查询增强请求中各阶段（分类、意图、扩展、上下文精炼）的耗时与结果，
追踪上下文保存在 ContextVar 中，随请求结束而丢弃
"""
import logging
import time
import uuid
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, field
from datetime import datetime
from contextvars import ContextVar
import json

logger = logging.getLogger(__name__)

_trace_context: ContextVar[Optional["EnhancementTrace"]] = ContextVar("enhancement_trace", default=None)


@dataclass
class TraceStep:
    """追踪步骤"""
    step_id: str
    step_name: str
    start_time: float
    end_time: Optional[float] = None
    duration_ms: Optional[float] = None
    status: str = "running"
    input_data: Dict[str, Any] = field(default_factory=dict)
    output_data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def finish(self, output_data: Dict[str, Any] = None, error: str = None):
        """完成步骤"""
        self.end_time = time.time()
        self.duration_ms = (self.end_time - self.start_time) * 1000
        if output_data:
            self.output_data = output_data
        if error:
            self.error = error
            self.status = "error"
        else:
            self.status = "completed"


@dataclass
class EnhancementTrace:
    """查询增强链路追踪上下文"""
    trace_id: str
    query: str
    start_time: float
    steps: List[TraceStep] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def start_step(self, step_name: str, input_data: Dict[str, Any] = None) -> TraceStep:
        """开始一个新步骤"""
        step = TraceStep(
            step_id=f"{self.trace_id}_{len(self.steps)}",
            step_name=step_name,
            start_time=time.time(),
            input_data=input_data or {},
        )
        self.steps.append(step)
        logger.debug(
            f"[Trace:{self.trace_id[:8]}] START {step_name} | input: {_dumps(step.input_data)}"
        )
        return step

    def finish_step(self, step: TraceStep, output_data: Dict[str, Any] = None, error: str = None):
        """完成指定步骤"""
        if step.status != "running":
            return
        step.finish(output_data, error)
        if error:
            logger.warning(
                f"[Trace:{self.trace_id[:8]}] END {step.step_name} | {step.duration_ms:.1f}ms | error: {error}"
            )
        else:
            logger.debug(
                f"[Trace:{self.trace_id[:8]}] END {step.step_name} | {step.duration_ms:.1f}ms "
                f"| output: {_dumps(step.output_data)}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "trace_id": self.trace_id,
            "query": self.query,
            "start_time": datetime.fromtimestamp(self.start_time).isoformat(),
            "total_duration_ms": (time.time() - self.start_time) * 1000,
            "steps": [
                {
                    "step_name": s.step_name,
                    "duration_ms": s.duration_ms,
                    "status": s.status,
                    "input": _truncate_dict(s.input_data),
                    "output": _truncate_dict(s.output_data),
                    "error": s.error,
                }
                for s in self.steps
            ],
            "metadata": self.metadata,
        }


def _truncate_dict(d: Dict, max_len: int = 200) -> Dict:
    """截断字典值用于日志显示"""
    result = {}
    for k, v in d.items():
        if isinstance(v, str) and len(v) > max_len:
            result[k] = v[:max_len] + "..."
        elif isinstance(v, dict):
            result[k] = _truncate_dict(v, max_len)
        elif isinstance(v, list):
            result[k] = f"[{len(v)} items]"
        else:
            result[k] = v
    return result


def _dumps(data: Dict[str, Any]) -> str:
    return json.dumps(_truncate_dict(data), ensure_ascii=False, default=str)


def start_enhancement_trace(query: str, metadata: Dict[str, Any] = None) -> EnhancementTrace:
    """开始查询增强链路追踪"""
    trace_id = str(uuid.uuid4())
    ctx = EnhancementTrace(
        trace_id=trace_id,
        query=query,
        start_time=time.time(),
        metadata=metadata or {},
    )
    _trace_context.set(ctx)

    logger.debug(f"[Trace:{trace_id[:8]}] START ENHANCEMENT | query: {query[:100]}")
    return ctx


def get_enhancement_trace() -> Optional[EnhancementTrace]:
    """获取当前链路追踪上下文"""
    return _trace_context.get()


def end_enhancement_trace(error: str = None) -> Optional[Dict[str, Any]]:
    """结束链路追踪，返回追踪摘要"""
    ctx = _trace_context.get()
    if not ctx:
        return None

    total_duration = (time.time() - ctx.start_time) * 1000

    if error:
        logger.warning(f"[Trace:{ctx.trace_id[:8]}] ENHANCEMENT DEGRADED | {total_duration:.1f}ms | {error}")
    else:
        logger.info(
            f"[Trace:{ctx.trace_id[:8]}] ENHANCEMENT COMPLETE | {total_duration:.1f}ms "
            f"| steps: {[s.step_name for s in ctx.steps]}"
        )

    result = ctx.to_dict()
    _trace_context.set(None)
    return result


class EnhancementTraceStep:
    """追踪步骤上下文管理器，没有活动追踪时为空操作"""

    def __init__(self, step_name: str, input_data: Dict[str, Any] = None):
        self.step_name = step_name
        self.input_data = input_data or {}
        self.ctx = get_enhancement_trace()
        self.step: Optional[TraceStep] = None

    def __enter__(self):
        if self.ctx:
            self.step = self.ctx.start_step(self.step_name, self.input_data)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.ctx and self.step:
            error = str(exc_val) if exc_val else None
            self.ctx.finish_step(self.step, error=error)
        return False

    def finish(self, output_data: Dict[str, Any] = None):
        """手动完成步骤"""
        if self.ctx and self.step:
            self.ctx.finish_step(self.step, output_data)


def trace_step(step_name: str, input_data: Dict[str, Any] = None) -> EnhancementTraceStep:
    """追踪步骤上下文管理器"""
    return EnhancementTraceStep(step_name, input_data)
