"""
Class decorator that traces every run of a flow.
"""

from functools import wraps
from typing import Optional

from pocketflow import AsyncFlow

from .config import TracingConfig
from .core import LangfuseTracer


def _trace_input(shared: dict) -> dict:
    return {
        "session_id": shared.get("session_id"),
        "user_text": shared.get("user_text"),
    }


def trace_flow(config: Optional[TracingConfig] = None, flow_name: Optional[str] = None):
    """
    Trace each run of the decorated Flow/AsyncFlow class as one Langfuse span.

    The span input is the session id and user text from the shared store,
    its output the shared "response" entry. With no usable Langfuse config
    the flow runs unchanged.

    Args:
        config: Tracing configuration (read from the environment when None)
        flow_name: Span name (defaults to the class name)
    """
    def decorator(flow_class):
        name = flow_name or flow_class.__name__
        original_init = flow_class.__init__

        @wraps(original_init)
        def __init__(self, *args, **kwargs):
            original_init(self, *args, **kwargs)
            self._tracer = LangfuseTracer(config or TracingConfig.from_env())

        flow_class.__init__ = __init__

        if issubclass(flow_class, AsyncFlow):
            original_run_async = flow_class.run_async

            @wraps(original_run_async)
            async def run_async(self, shared):
                span = self._tracer.start_trace(name, _trace_input(shared), shared.get("session_id"))
                try:
                    result = await original_run_async(self, shared)
                except Exception as e:
                    self._tracer.end_trace(span, {"error": str(e)}, status="error")
                    raise
                self._tracer.end_trace(span, shared.get("response"))
                return result

            flow_class.run_async = run_async
        else:
            original_run = flow_class.run

            @wraps(original_run)
            def run(self, shared):
                span = self._tracer.start_trace(name, _trace_input(shared), shared.get("session_id"))
                try:
                    result = original_run(self, shared)
                except Exception as e:
                    self._tracer.end_trace(span, {"error": str(e)}, status="error")
                    raise
                self._tracer.end_trace(span, shared.get("response"))
                return result

            flow_class.run = run

        flow_class.flow_name = name
        return flow_class

    return decorator
