"""
Keyword-based issue classification.

Maps free text (plus any key phrases extracted by the analysis service) to one
of five support categories:
- network: connectivity, Wi-Fi, DNS, routers
- windows: OS faults, updates, drivers, blue screens
- account: sign-in, passwords, MFA, lockouts
- app: application crashes, install problems, generic errors
- triage: nothing matched, run the generic interview

Matching is plain substring containment, so "application" hits the app group
and "tip" hits the network group. Rule order decides ties.
"""
from __future__ import annotations

from typing import Iterable, List, Literal, Optional, Tuple


Category = Literal["triage", "network", "windows", "account", "app"]

CATEGORIES: Tuple[str, ...] = ("triage", "network", "windows", "account", "app")

DEFAULT_CATEGORY: Category = "triage"

NETWORK_KEYWORDS = frozenset([
    "wifi", "wi-fi", "internet", "router", "dns", "ip", "ethernet", "network"
])

WINDOWS_KEYWORDS = frozenset([
    "windows", "blue screen", "bsod", "driver", "update", "device manager"
])

ACCOUNT_KEYWORDS = frozenset([
    "login", "password", "account", "mfa", "2fa", "locked", "sign in", "signin"
])

APP_KEYWORDS = frozenset([
    "app", "crash", "error", "bug", "install", "uninstall", "permission"
])

# Evaluated top to bottom, first hit wins
RULES: Tuple[Tuple[Category, frozenset], ...] = (
    ("network", NETWORK_KEYWORDS),
    ("windows", WINDOWS_KEYWORDS),
    ("account", ACCOUNT_KEYWORDS),
    ("app", APP_KEYWORDS),
)


def _haystacks(text: Optional[str], key_phrases: Optional[Iterable[str]]) -> List[str]:
    """Lower-cased text followed by every lower-cased key phrase."""
    haystacks = [(text or "").strip().lower()]
    for phrase in key_phrases or ():
        if phrase:
            haystacks.append(str(phrase).strip().lower())
    return haystacks


def matched_keywords(text: Optional[str], key_phrases: Optional[Iterable[str]] = None) -> List[str]:
    """
    Return the keywords of the winning rule group that occur in the input.

    Empty when nothing matched (the input falls back to triage).
    """
    haystacks = _haystacks(text, key_phrases)
    for _, keywords in RULES:
        hits = sorted(k for k in keywords if any(k in h for h in haystacks))
        if hits:
            return hits
    return []


def classify_issue(text: Optional[str], key_phrases: Optional[Iterable[str]] = None) -> Category:
    """
    Classify a problem description into a support category.

    Args:
        text: User message
        key_phrases: Key phrases extracted from the message, if any

    Returns:
        One of 'network', 'windows', 'account', 'app' or 'triage'
    """
    haystacks = _haystacks(text, key_phrases)

    for category, keywords in RULES:
        for keyword in keywords:
            if any(keyword in haystack for haystack in haystacks):
                return category

    return DEFAULT_CATEGORY
