from .enhancement_trace import (
    TraceStep,
    EnhancementTrace,
    EnhancementTraceStep,
    start_enhancement_trace,
    end_enhancement_trace,
    get_enhancement_trace,
    trace_step,
)

__all__ = [
    "TraceStep",
    "EnhancementTrace",
    "EnhancementTraceStep",
    "start_enhancement_trace",
    "end_enhancement_trace",
    "get_enhancement_trace",
    "trace_step",
]
