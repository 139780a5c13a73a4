"""
Flows for the IT support dialog.

Flows orchestrate nodes into a complete turn; DialogRouter is the entry
point the transports call.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pocketflow import AsyncFlow

from core.settings import Settings
from langfuse_tracing import trace_flow, TracingConfig
from nodes import (
    InterceptCommandNode,
    RedactInputNode,
    AnalyzeTextNode,
    RouteIssueNode,
    GuidedStepNode,
    FormatReplyNode,
)
from utils.logger import get_logger
from utils.replies import GENERIC_ERROR_REPLY
from utils.session_store import Session, SessionStore
from utils.text_analysis import TextAnalysisGateway

logger = get_logger(__name__)

# Initialize tracing configuration
try:
    tracing_config = TracingConfig.from_env()
except Exception as e:
    logger.warning(f"Failed to load tracing configuration: {e}")
    tracing_config = TracingConfig()


# ============================================================================
# Dialog Turn Flow
# ============================================================================

@trace_flow(config=tracing_config, flow_name="SupportDialogTurn")
class DialogTurnFlow(AsyncFlow):
    """One user message in, one reply out."""

    def __init__(self, store: SessionStore, gateway: TextAnalysisGateway, analysis_timeout_seconds: float = 10.0):
        command_node = InterceptCommandNode(store)
        redact_node = RedactInputNode()
        analyze_node = AnalyzeTextNode(gateway, timeout_seconds=analysis_timeout_seconds)
        route_node = RouteIssueNode()
        step_node = GuidedStepNode()
        format_node = FormatReplyNode()

        # Commands and blank messages skip analysis entirely
        _ = command_node - "handled" >> format_node
        _ = command_node >> redact_node >> analyze_node >> route_node

        # A fresh conversation is answered by the router itself
        _ = route_node - "routed" >> format_node
        _ = route_node >> step_node >> format_node

        super().__init__(start=command_node)

        logger.debug("Dialog turn flow created")


def create_dialog_flow(
    store: SessionStore,
    gateway: TextAnalysisGateway,
    analysis_timeout_seconds: float = 10.0,
) -> AsyncFlow:
    """
    Create the dialog turn flow.

    Flow:
    1. Intercept commands (help/reset/start/summary/mode) and blank messages
    2. Redact credentials
    3. Analyze text (sentiment, key phrases, language, PII)
    4. Route idle sessions to a mode, record key phrases
    5. Advance the mode's guided question sequence
    6. Format the reply

    Returns:
        Configured AsyncFlow instance with tracing
    """
    return DialogTurnFlow(store, gateway, analysis_timeout_seconds)


# ============================================================================
# Dialog Router
# ============================================================================

@dataclass
class DialogReply:
    """Result of one dialog turn."""
    text: str
    action_taken: str = "unknown"
    metadata: Dict[str, Any] = field(default_factory=dict)


class DialogRouter:
    """
    Runs dialog turns against a session store.

    Shared by every transport; each turn only touches the session keyed by its
    own conversation id.
    """

    def __init__(
        self,
        store: SessionStore,
        gateway: TextAnalysisGateway,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.settings = settings if settings is not None else Settings()
        self.flow = create_dialog_flow(store, gateway, self.settings.analysis_timeout_seconds)

    async def handle_turn(self, session: Session, text: str) -> DialogReply:
        """
        Process one message for a session.

        Args:
            session: Session the message belongs to
            text: Raw user text

        Returns:
            DialogReply with the reply text, action and metadata
        """
        shared: Dict[str, Any] = {
            "session": session,
            "session_id": session.session_id,
            "user_text": (text or "").strip(),
            "notices": [],
            "response": {},
        }

        logger.debug(
            f"Turn for session {session.session_id} ({session.mode}, {session.step}): {shared['user_text'][:100]}"
        )

        try:
            await self.flow.run_async(shared)
        except Exception as e:
            logger.error(f"Dialog turn failed for session {session.session_id}: {e}", exc_info=True)
            return DialogReply(text=GENERIC_ERROR_REPLY, action_taken="error")

        response = shared["response"]
        return DialogReply(
            text=response.get("text", ""),
            action_taken=response.get("action_taken", "unknown"),
            metadata=response.get("metadata", {}),
        )

    async def handle_message(self, session_id: Optional[str], text: str) -> Tuple[Session, DialogReply]:
        """
        Look up (or create) the session for session_id and process one message.

        Returns:
            The session and the reply
        """
        session = self.store.get_or_create(session_id)
        reply = await self.handle_turn(session, text)
        return session, reply
