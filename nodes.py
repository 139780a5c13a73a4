"""
Nodes for the IT support dialog.

All nodes follow the pattern:
- prep(): Read from shared store
- exec(): Decide what to do
- post(): Mutate the session / write the response, return action

Shared store keys used by a turn:
    session       Session being served
    session_id    Its id (for logging and tracing)
    user_text     Message text (redacted once RedactInputNode ran)
    analysis      AnalysisResult for the message
    notices       Warnings prepended to the reply
    response      {"text", "action_taken", "metadata"}
"""
import asyncio
from typing import Any, Dict, Optional

from pocketflow import AsyncNode, Node

from utils.dialog_script import (
    GUIDED_STEPS,
    ISSUE_MAX_CHARS,
    MAX_KEY_PHRASES,
    StepPlan,
    parse_command,
    plan_step,
)
from utils.issue_classifier import classify_issue, matched_keywords
from utils.logger import get_logger
from utils.redactor import get_redaction_summary, redact_text
from utils.replies import (
    EMPTY_MESSAGE_REPLY,
    FALLBACK_REPLY,
    REDACTION_NOTICE,
    RESET_REPLY,
    START_REPLY,
    acknowledgment,
    flow_intro,
    help_text,
    mode_set_reply,
    pii_warning,
    summary_reply,
)
from utils.session_store import SessionStore
from utils.text_analysis import AnalysisResult, TextAnalysisGateway
from utils.ticket import SINGLE_VALUE_FIELDS, summarize

logger = get_logger(__name__)


def _set_response(shared: Dict, text: str, action: str) -> None:
    response = shared.setdefault("response", {})
    response["text"] = text
    response["action_taken"] = action


# ============================================================================
# Node 1: InterceptCommandNode
# ============================================================================

class InterceptCommandNode(Node):
    """Handle blank messages and the help/reset/start/summary/mode commands."""

    def __init__(self, store: SessionStore):
        super().__init__()
        self.store = store

    def prep(self, shared: Dict) -> str:
        return shared.get("user_text", "")

    def exec(self, text: str) -> Optional[tuple]:
        if not text.strip():
            return ("empty", None)
        return parse_command(text)

    def post(self, shared: Dict, prep_res: str, exec_res: Optional[tuple]) -> str:
        if exec_res is None:
            return "default"

        command, argument = exec_res
        session = shared["session"]

        if command == "empty":
            _set_response(shared, EMPTY_MESSAGE_REPLY, "empty_message")
        elif command == "help":
            _set_response(shared, help_text(), "help")
        elif command == "summary":
            _set_response(shared, summary_reply(summarize(session.ticket)), "summary")
        elif command == "reset":
            self.store.reset(session)
            _set_response(shared, RESET_REPLY, "reset")
        elif command == "start":
            session.switch_mode("triage")
            _set_response(shared, f"{START_REPLY}\n{flow_intro('triage')}", "start")
        elif command == "mode":
            session.switch_mode(argument)
            _set_response(shared, mode_set_reply(argument), "mode")

        logger.debug(f"Session {session.session_id}: command '{command}' -> ({session.mode}, {session.step})")
        return "handled"


# ============================================================================
# Node 2: RedactInputNode
# ============================================================================

class RedactInputNode(Node):
    """Strip credentials from the message before analysis and ticket storage."""

    def prep(self, shared: Dict) -> Dict:
        return {
            "text": shared.get("user_text", ""),
            "session_id": shared.get("session_id", "unknown")
        }

    def exec(self, prep_data: Dict) -> Dict:
        text = prep_data["text"]
        redacted = redact_text(text)
        has_sensitive = redacted != text

        if has_sensitive:
            logger.warning(
                f"Redacted credentials from message in session {prep_data['session_id']}: "
                f"{get_redaction_summary(text)}"
            )

        return {
            "redacted_text": redacted,
            "had_sensitive_data": has_sensitive
        }

    def post(self, shared: Dict, prep_res: Dict, exec_res: Dict) -> str:
        shared["user_text"] = exec_res["redacted_text"]
        if exec_res["had_sensitive_data"]:
            shared.setdefault("notices", []).append(REDACTION_NOTICE)
        return "default"


# ============================================================================
# Node 3: AnalyzeTextNode
# ============================================================================

class AnalyzeTextNode(AsyncNode):
    """
    Call the text analysis service with a timeout.

    A timeout or any other failure degrades to an empty (neutral) analysis so
    the dialog carries on.
    """

    def __init__(self, gateway: TextAnalysisGateway, timeout_seconds: float = 10.0):
        super().__init__(max_retries=1)
        self.gateway = gateway
        self.timeout_seconds = timeout_seconds

    async def prep_async(self, shared: Dict) -> str:
        return shared.get("user_text", "")

    async def exec_async(self, text: str) -> AnalysisResult:
        return await asyncio.wait_for(self.gateway.analyze(text), timeout=self.timeout_seconds)

    async def exec_fallback_async(self, prep_res: str, exc: Exception) -> AnalysisResult:
        if isinstance(exc, asyncio.TimeoutError):
            reason = f"timed out after {self.timeout_seconds}s"
        else:
            reason = str(exc) or exc.__class__.__name__
        logger.warning(f"Text analysis unavailable, continuing with neutral analysis: {reason}")
        return AnalysisResult.empty(reason)

    async def post_async(self, shared: Dict, prep_res: str, exec_res: AnalysisResult) -> str:
        shared["analysis"] = exec_res
        warning = pii_warning(exec_res.pii_categories)
        if warning:
            shared.setdefault("notices", []).insert(0, warning)
        return "default"


# ============================================================================
# Node 4: RouteIssueNode
# ============================================================================

class RouteIssueNode(Node):
    """
    Route a new conversation to a mode and record key phrases.

    Idle sessions are classified and moved to the matching mode; sessions
    already in a mode only get the key-phrase line and continue to the
    guided step.
    """

    def prep(self, shared: Dict) -> Dict:
        analysis = shared.get("analysis") or AnalysisResult.empty()
        return {
            "session": shared["session"],
            "text": shared.get("user_text", ""),
            "analysis": analysis,
            "key_phrases": analysis.top_key_phrases(MAX_KEY_PHRASES),
        }

    def exec(self, context: Dict) -> Optional[str]:
        if context["session"].mode != "idle":
            return None
        category = classify_issue(context["text"], context["key_phrases"])
        logger.debug(
            f"Classified as {category} "
            f"(matched: {matched_keywords(context['text'], context['key_phrases'])})"
        )
        return category

    def post(self, shared: Dict, prep_res: Dict, exec_res: Optional[str]) -> str:
        session = prep_res["session"]
        ticket = session.ticket
        key_phrases = prep_res["key_phrases"]

        if key_phrases:
            ticket.append("symptoms", "keywords: " + ", ".join(key_phrases))

        if exec_res is None:
            return "default"

        analysis = prep_res["analysis"]
        session.switch_mode(exec_res)
        ticket.capture_issue(prep_res["text"][:ISSUE_MAX_CHARS])

        _set_response(
            shared,
            acknowledgment(analysis.sentiment, analysis.sentiment_label, analysis.language_code, exec_res),
            "routed",
        )
        logger.info(f"Session {session.session_id} routed to {exec_res}")
        return "routed"


# ============================================================================
# Node 5: GuidedStepNode
# ============================================================================

class GuidedStepNode(Node):
    """Advance the current mode's question sequence by one answer."""

    def prep(self, shared: Dict) -> Dict:
        return {
            "session": shared["session"],
            "text": shared.get("user_text", ""),
            "analysis": shared.get("analysis") or AnalysisResult.empty(),
        }

    def exec(self, context: Dict) -> Optional[StepPlan]:
        session = context["session"]
        if session.mode not in GUIDED_STEPS:
            return None
        return plan_step(session.mode, session.step, context["text"], context["analysis"], session.ticket.issue)

    def post(self, shared: Dict, prep_res: Dict, exec_res: Optional[StepPlan]) -> str:
        session = prep_res["session"]

        if exec_res is None:
            logger.warning(f"Session {session.session_id} in unknown mode '{session.mode}'")
            _set_response(shared, FALLBACK_REPLY, "fallback")
            return "default"

        for field_name, value in exec_res.updates:
            if field_name in SINGLE_VALUE_FIELDS:
                session.ticket.fill(field_name, value)
            else:
                session.ticket.append(field_name, value)

        previous = (session.mode, session.step)
        if exec_res.mode != session.mode:
            session.switch_mode(exec_res.mode)
        else:
            session.step = exec_res.step

        _set_response(shared, exec_res.reply, exec_res.action)
        logger.debug(
            f"Session {session.session_id}: {previous} -> ({session.mode}, {session.step}) [{exec_res.action}]"
        )
        return "default"


# ============================================================================
# Node 6: FormatReplyNode
# ============================================================================

class FormatReplyNode(Node):
    """Prepend queued notices and attach turn metadata."""

    def prep(self, shared: Dict) -> Dict:
        return {
            "response": shared.get("response", {}),
            "notices": shared.get("notices", []),
        }

    def exec(self, context: Dict) -> str:
        text = context["response"].get("text") or FALLBACK_REPLY
        notices = [n for n in context["notices"] if n]
        return "\n\n".join(notices + [text])

    def post(self, shared: Dict, prep_res: Dict, exec_res: str) -> str:
        response = shared.setdefault("response", {})
        response["text"] = exec_res
        response.setdefault("action_taken", "unknown")

        session = shared["session"]
        analysis: Optional[AnalysisResult] = shared.get("analysis")
        metadata: Dict[str, Any] = {"mode": session.mode, "step": session.step}
        if analysis is not None:
            metadata["detected_lang"] = analysis.language_code
            metadata["sentiment"] = analysis.sentiment_label
        response["metadata"] = metadata

        logger.info(f"Reply to session {session.session_id} [{response['action_taken']}]: {exec_res[:100]}")
        return "default"
