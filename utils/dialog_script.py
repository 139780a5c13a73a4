"""
Guided question sequences for each support mode.

Each mode is an ordered list of GuidedStep entries. The mode's intro (see
utils.replies.MODE_INTROS) asks the question answered at step 0; step N
stores the user's answer in a ticket field and asks the question answered at
step N+1. Past the last entry the session stays put and keeps collecting
notes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from utils.issue_classifier import classify_issue
from utils.replies import SEQUENCE_DONE_NUDGE, switching_reply, tone_prefix
from utils.text_analysis import AnalysisResult

# Max stored length of the issue line and of pasted command output
ISSUE_MAX_CHARS = 180
NETWORK_OUTPUT_MAX_CHARS = 220

# Key phrases kept per message
MAX_KEY_PHRASES = 6

ReplyBuilder = Callable[[str, AnalysisResult], str]


@dataclass(frozen=True)
class GuidedStep:
    """One question/answer slot in a mode's sequence."""
    field: str
    prompt: Union[str, ReplyBuilder] = ""
    label: str = ""
    limit: Optional[int] = None
    tried: Optional[str] = None
    reclassify: bool = False

    def entry(self, text: str) -> str:
        value = text[:self.limit] if self.limit else text
        return f"{self.label}: {value}" if self.label else value

    def reply(self, text: str, analysis: AnalysisResult) -> str:
        if callable(self.prompt):
            return self.prompt(text, analysis)
        return self.prompt


@dataclass
class StepPlan:
    """What a guided step does to the session: ticket updates, next position, reply."""
    mode: str
    step: int
    reply: str
    action: str = "guided_step"
    updates: List[Tuple[str, str]] = field(default_factory=list)


# ============================================================================
# Network output diagnosis
# ============================================================================

DNS_FAILURE_PHRASES = (
    "non-existent domain", "can't find", "could not find host", "server failed",
    "dns request timed out", "no response from server", "nxdomain",
)

CONNECTIVITY_FAILURE_PHRASES = (
    "timed out", "timeout", "unreachable", "general failure",
    "100% loss", "transmit failed",
)

DNS_FIX_REPLY = "\n".join([
    "Your connection is up but name lookups are failing (DNS). Try:",
    "1) ipconfig /flushdns",
    "2) Set DNS to 1.1.1.1 or 8.8.8.8 in the adapter settings",
    "3) Turn off VPN/proxy for a moment and run nslookup google.com again",
    "Did that help? (Type `summary` anytime.)",
])

CONNECTIVITY_FIX_REPLY = "\n".join([
    "Packets aren't getting through. Try:",
    "1) Turn Wi-Fi off/on or re-plug the Ethernet cable",
    "2) Run ipconfig /release then ipconfig /renew",
    "3) Forget and re-join the network",
    "4) Restart the router/modem if you have access to it",
    "Did that help? (Type `summary` anytime.)",
])

NETWORK_FOLLOW_UP_REPLY = (
    "Thanks. Next: does it happen only on this device, or multiple devices on the same network?\n"
    "(Type `summary` anytime.)"
)


def diagnose_network_output(text: str, analysis: Optional[AnalysisResult] = None) -> str:
    """Pick the follow-up for pasted ipconfig/ping/nslookup output."""
    lowered = (text or "").lower()
    if any(phrase in lowered for phrase in DNS_FAILURE_PHRASES):
        return DNS_FIX_REPLY
    if any(phrase in lowered for phrase in CONNECTIVITY_FAILURE_PHRASES):
        return CONNECTIVITY_FIX_REPLY
    return NETWORK_FOLLOW_UP_REPLY


def _triage_device_question(text: str, analysis: AnalysisResult) -> str:
    return f"{tone_prefix(analysis.sentiment_label)} Got it.\n1) What device? (Windows/Mac/phone + model)"


WRAP_UP_REPLY = (
    "Thanks, that's what I need for now. "
    "Type `summary` to see your ticket or `reset` to start over."
)


# ============================================================================
# Step tables
# ============================================================================

GUIDED_STEPS: Dict[str, List[GuidedStep]] = {
    "triage": [
        GuidedStep(field="issue", prompt=_triage_device_question, limit=ISSUE_MAX_CHARS),
        GuidedStep(field="device", prompt="2) What OS + version? (Windows 11 / macOS / iOS / Android)"),
        GuidedStep(field="os", prompt="3) Paste exact error text (redacted). If none, describe what happens."),
        GuidedStep(field="errors", reclassify=True),
    ],
    "network": [
        GuidedStep(
            field="symptoms", label="connection",
            prompt="A) Any website opens? B) Fails on ALL sites or only one? Reply: A=yes B=all",
        ),
        GuidedStep(
            field="symptoms", label="basic check",
            prompt=(
                "Run ONE command (Windows) and paste output:\n"
                "1) ipconfig /all\n2) ping 8.8.8.8 -n 4\n3) nslookup google.com"
            ),
        ),
        GuidedStep(
            field="errors", label="network output", limit=NETWORK_OUTPUT_MAX_CHARS,
            tried="network diagnostics provided", prompt=diagnose_network_output,
        ),
    ],
    "windows": [
        GuidedStep(
            field="os",
            prompt=(
                "Do you see an error or stop code (e.g. 0x..., a blue screen message)? "
                "Paste it (redacted), or describe what happens."
            ),
        ),
        GuidedStep(
            field="errors",
            prompt="What have you tried so far? (restart, undo the update, roll back the driver, safe mode...)",
        ),
        GuidedStep(field="what_tried", prompt=WRAP_UP_REPLY),
    ],
    "account": [
        GuidedStep(
            field="symptoms", label="login type",
            prompt="Paste the exact error text (redacted). Is the account locked, or is MFA/2FA failing?",
        ),
        GuidedStep(
            field="errors",
            prompt="What have you tried? (password reset, another browser or device, re-registering MFA...)",
        ),
        GuidedStep(field="what_tried", prompt=WRAP_UP_REPLY),
    ],
    "app": [
        GuidedStep(
            field="app",
            prompt=(
                "Paste the exact error message (redacted). "
                "When does it happen: on launch, on install, or during a specific action?"
            ),
        ),
        GuidedStep(
            field="errors",
            prompt="What have you tried? (restart the app, update, reinstall, run as administrator...)",
        ),
        GuidedStep(field="what_tried", prompt=WRAP_UP_REPLY),
    ],
}


def steps_for(mode: str) -> List[GuidedStep]:
    return GUIDED_STEPS.get(mode, [])


def plan_step(mode: str, step: int, text: str, analysis: AnalysisResult, issue: str = "") -> StepPlan:
    """
    Work out the effect of a user answer at (mode, step).

    Args:
        mode: Current guided mode
        step: Current step index
        text: User answer
        analysis: Analysis of the answer
        issue: Ticket issue so far (used when re-classifying)

    Returns:
        StepPlan with the ticket updates, the next (mode, step) and the reply
    """
    steps = steps_for(mode)

    if step >= len(steps):
        # Sequence exhausted: keep collecting notes, stay on the last position
        return StepPlan(
            mode=mode,
            step=len(steps),
            reply=SEQUENCE_DONE_NUDGE,
            action="sequence_done",
            updates=[("symptoms", f"note: {text}")],
        )

    current = steps[step]
    updates = [(current.field, current.entry(text))]
    if current.tried:
        updates.append(("what_tried", current.tried))

    if current.reclassify:
        category = classify_issue(f"{issue} {text}".strip(), analysis.top_key_phrases(MAX_KEY_PHRASES))
        return StepPlan(
            mode=category,
            step=0,
            reply=switching_reply(category),
            action="reclassified",
            updates=updates,
        )

    return StepPlan(
        mode=mode,
        step=step + 1,
        reply=current.reply(text, analysis),
        updates=updates,
    )


# ============================================================================
# Commands
# ============================================================================

EXACT_COMMANDS = frozenset(["help", "reset", "start", "summary"])
MODE_COMMAND_PREFIX = "mode "
SELECTABLE_MODES = ("network", "windows", "account", "app", "triage")


def parse_command(text: str) -> Optional[Tuple[str, Optional[str]]]:
    """
    Recognize a user command.

    Returns:
        ("help" | "reset" | "start" | "summary", None), ("mode", <mode>), or
        None when the text is not a command (including "mode" with an
        unknown mode name)
    """
    lowered = (text or "").strip().lower()
    if lowered in EXACT_COMMANDS:
        return lowered, None
    if lowered.startswith(MODE_COMMAND_PREFIX):
        mode = lowered[len(MODE_COMMAND_PREFIX):].strip()
        if mode in SELECTABLE_MODES:
            return "mode", mode
    return None
