"""
Tracing Module

Observability for dialog flows using Langfuse as the backend. The
trace_flow decorator records each flow run (input text, reply, errors) as a
span tagged with the conversation's session id.
"""

from .config import TracingConfig
from .core import LangfuseTracer
from .decorator import trace_flow

__all__ = ["trace_flow", "TracingConfig", "LangfuseTracer"]
