"""
Langfuse tracer used by the flow decorator.
"""

from typing import Any, Optional

from langfuse import Langfuse

from utils.logger import get_logger
from .config import TracingConfig

logger = get_logger(__name__)

# Longest string kept in a traced payload
MAX_TRACE_VALUE_CHARS = 500


def to_traceable(value: Any, depth: int = 0) -> Any:
    """Reduce arbitrary objects to JSON-friendly, size-bounded values."""
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value[:MAX_TRACE_VALUE_CHARS]
    if depth >= 3:
        return repr(value)[:MAX_TRACE_VALUE_CHARS]
    if isinstance(value, dict):
        return {str(k): to_traceable(v, depth + 1) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_traceable(v, depth + 1) for v in value]
    return repr(value)[:MAX_TRACE_VALUE_CHARS]


class LangfuseTracer:
    """
    Thin wrapper around the Langfuse client.

    When the config is incomplete (or the client cannot be created) the
    tracer has no client and every method is a no-op.
    """

    def __init__(self, config: TracingConfig):
        self.config = config
        self.client: Optional[Langfuse] = None

        if not config.validate():
            return

        try:
            self.client = Langfuse(**config.to_langfuse_kwargs())
            logger.info(f"Langfuse tracing enabled ({config.langfuse_host})")
        except Exception as e:
            logger.warning(f"Failed to initialize Langfuse client, tracing disabled: {e}")
            self.client = None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def start_trace(
        self,
        name: str,
        input_data: Any = None,
        session_id: Optional[str] = None,
    ) -> Optional[Any]:
        """
        Open a root span for one flow run.

        Returns:
            The span handle, or None when tracing is disabled
        """
        if not self.client:
            return None
        try:
            span = self.client.start_span(
                name=name,
                input=to_traceable(input_data) if self.config.trace_inputs else None,
            )
            if session_id:
                span.update_trace(session_id=session_id)
            return span
        except Exception as e:
            logger.warning(f"Failed to start trace '{name}': {e}")
            return None

    def end_trace(self, span: Optional[Any], output_data: Any = None, status: str = "success") -> None:
        """Close a span opened by start_trace, recording output and status."""
        if span is None:
            return
        try:
            if status == "error" and self.config.trace_errors:
                span.update(output=to_traceable(output_data), level="ERROR", status_message=status)
            elif self.config.trace_outputs:
                span.update(output=to_traceable(output_data))
            span.end()
        except Exception as e:
            logger.warning(f"Failed to end trace: {e}")

    def flush(self) -> None:
        if self.client:
            self.client.flush()
