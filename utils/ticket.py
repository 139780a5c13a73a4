"""
Support ticket accumulated over a conversation.

Fields only grow during a session: single-value fields are filled once, list
fields are append-only with exact-repeat deduplication. Only an explicit
session reset starts a new ticket.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

SUMMARY_HEADER = "----- TECH SUPPORT TICKET SUMMARY -----"
SUMMARY_FOOTER = "--------------------------------------"

SINGLE_VALUE_FIELDS = ("issue", "device", "os", "app")
LIST_FIELDS = ("symptoms", "errors", "what_tried")


def add_unique(items: List[str], value: Optional[str]) -> bool:
    """Append value unless it is empty or already present. Returns True if appended."""
    if not value:
        return False
    if value in items:
        return False
    items.append(value)
    return True


@dataclass
class Ticket:
    """Structured description of the user's problem."""
    issue: str = ""
    device: str = ""
    os: str = ""
    app: str = ""
    symptoms: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    what_tried: List[str] = field(default_factory=list)
    urgency: str = "normal"

    def capture_issue(self, text: str) -> bool:
        """Set the issue if it is still empty. Returns True if it was set."""
        if self.issue or not text:
            return False
        self.issue = text
        return True

    def fill(self, field_name: str, value: str) -> None:
        """
        Fill a single-value field.

        An empty field takes the value. A different value for an already
        populated field is kept as a symptom line instead of overwriting.
        """
        if field_name not in SINGLE_VALUE_FIELDS:
            raise ValueError(f"Not a single-value ticket field: {field_name}")
        if not value:
            return
        current = getattr(self, field_name)
        if not current:
            setattr(self, field_name, value)
        elif current != value:
            label = "details" if field_name == "issue" else field_name
            add_unique(self.symptoms, f"{label}: {value}")

    def append(self, field_name: str, value: str) -> bool:
        """Append to one of the list fields with deduplication."""
        if field_name not in LIST_FIELDS:
            raise ValueError(f"Not a list ticket field: {field_name}")
        return add_unique(getattr(self, field_name), value)

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in SINGLE_VALUE_FIELDS + LIST_FIELDS)

    def to_dict(self) -> Dict:
        return asdict(self)


def summarize(ticket: Ticket) -> str:
    """
    Render the ticket as a fixed-layout text block.

    Empty single-value fields show a placeholder; list lines appear only when
    the list has entries.
    """
    lines = [
        SUMMARY_HEADER,
        f"Issue: {ticket.issue or '(not set)'}",
        f"Device: {ticket.device or '(unknown)'}",
        f"OS: {ticket.os or '(unknown)'}",
        f"App: {ticket.app or '(n/a)'}",
        f"Urgency: {ticket.urgency}",
    ]
    if ticket.symptoms:
        lines.append(f"Symptoms: {' | '.join(ticket.symptoms)}")
    if ticket.errors:
        lines.append(f"Errors: {' | '.join(ticket.errors)}")
    if ticket.what_tried:
        lines.append(f"Tried: {' | '.join(ticket.what_tried)}")
    lines.append(SUMMARY_FOOTER)
    return "\n".join(lines)
