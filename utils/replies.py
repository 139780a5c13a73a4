"""
Canned reply texts for the support dialog.
Keeps every user-facing string in one place.
"""
from typing import Iterable, Optional

from utils.text_analysis import SentimentResult

MODE_INTROS = {
    "triage": (
        "Quick triage: tell me (1) what you're trying to do, (2) what happened instead, "
        "(3) exact error text if any."
    ),
    "network": "Network mode: first, are you on Wi-Fi or Ethernet?",
    "windows": "Windows mode: Windows 10 or 11? What changed recently?",
    "account": "Account mode: Microsoft login, school SSO, or app login?",
    "app": "App mode: what app + version, and what's the exact error?",
}

EMPTY_MESSAGE_REPLY = "Send a message and I'll help you troubleshoot."
FALLBACK_REPLY = "I'm here. Type `start` to begin, or `help` for commands."
RESET_REPLY = "✅ Reset done. Type `start` to begin."
START_REPLY = "✅ Starting tech support flow."
GENERIC_ERROR_REPLY = "⚠️ Something went wrong on my end. Please try again in a moment."

SEQUENCE_DONE_NUDGE = (
    "Got it, I've added that to your ticket. "
    "Type `summary` to see the ticket or `reset` to start over."
)

REDACTION_NOTICE = (
    "⚠️ For your security, credentials have been redacted from your message. "
    "Please avoid sharing passwords, API keys, or tokens."
)

# Max distinct PII categories listed in a warning
MAX_PII_CATEGORIES = 6


def flow_intro(mode: str) -> str:
    """Opening question of a guided mode (triage for anything unknown)."""
    return MODE_INTROS.get(mode, MODE_INTROS["triage"])


def tone_prefix(sentiment_label: Optional[str]) -> str:
    if sentiment_label == "negative":
        return "I got you, we'll fix this. 💪"
    if sentiment_label == "positive":
        return "Nice, let's keep that momentum. 😄"
    return "Alright, let's troubleshoot this step-by-step. ✅"


def format_confidence(sentiment: Optional[SentimentResult]) -> str:
    """Render confidence scores as ' (pos 0.10, neu 0.20, neg 0.70)', or '' when unknown."""
    if sentiment is None:
        return ""
    return (
        f" (pos {sentiment.positive:.2f}, neu {sentiment.neutral:.2f}, "
        f"neg {sentiment.negative:.2f})"
    )


def pii_warning(categories: Optional[Iterable[str]]) -> Optional[str]:
    """Warning listing detected sensitive-entity categories, or None if there are none."""
    distinct = []
    for category in categories or ():
        if category and category not in distinct:
            distinct.append(category)
    if not distinct:
        return None
    listed = ", ".join(distinct[:MAX_PII_CATEGORIES])
    return (
        f"⚠️ I might be seeing sensitive info ({listed}). "
        "Don't paste passwords/keys/cards/tokens. Redact like: ABCD****WXYZ."
    )


def help_text() -> str:
    return "\n".join([
        "Commands:",
        "- help",
        "- start",
        "- reset",
        "- summary",
        "- mode network | windows | account | app | triage",
        "",
        "Tip: Don't paste sensitive info. Redact secrets like ABCD****WXYZ.",
    ])


def mode_set_reply(mode: str) -> str:
    return f"✅ Mode set to: {mode}\n{flow_intro(mode)}"


def summary_reply(summary: str) -> str:
    return f"```text\n{summary}\n```"


def acknowledgment(
    sentiment: Optional[SentimentResult],
    sentiment_label: str,
    language: str,
    mode: str,
) -> str:
    """First reply of a conversation: tone, what was detected, and the mode's opening question."""
    return (
        f"{tone_prefix(sentiment_label)} (lang: {language}, sentiment: {sentiment_label}"
        f"{format_confidence(sentiment)})\n{flow_intro(mode)}"
    )


def switching_reply(mode: str) -> str:
    return f"Perfect, switching to: {mode}\n{flow_intro(mode)}"
