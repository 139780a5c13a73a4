"""
Credential redaction for user messages.

Runs before a message is sent to the analysis service or stored in a ticket.
Patterns target things users paste by accident (password=..., bearer tokens,
long API keys, private key blocks); ordinary sentences such as
"my password expired" are left alone.
"""
import re
from typing import Pattern

_DEFAULT_REPLACEMENT = "[REDACTED]"
_ALL_PATTERN_NAMES = (
    "private_key", "aws_key", "password_field", "token", "api_key"
)

PATTERNS: dict[str, Pattern] = {
    "private_key": re.compile(r'-----BEGIN (?:RSA |EC |OPENSSH )?PRIVATE KEY-----[\s\S]+?-----END (?:RSA |EC |OPENSSH )?PRIVATE KEY-----'),
    "aws_key": re.compile(r'(?i)\b(aws_access_key_id|aws_secret_access_key)\s*[:=]\s*[A-Za-z0-9/+=]+'),
    "password_field": re.compile(r'(?i)\b(password|passwd|pwd|pin)\s*[:=]\s*\S+'),
    "token": re.compile(r'(?i)\b(bearer\s+|(?:access_|refresh_|auth_|api_)?token\s*[:=]\s*)[A-Za-z0-9\-._~+/]+=*'),
    "api_key": re.compile(r'\b[A-Za-z0-9]{32,}\b'),
}

# Patterns whose first group is kept so the reader still sees what was removed
_KEEP_LABEL = frozenset(["password_field", "aws_key"])


def redact_text(
    text: str,
    *,
    patterns: tuple[str, ...] = _ALL_PATTERN_NAMES,
    replacement: str = _DEFAULT_REPLACEMENT
) -> str:
    """
    Redact credentials from text.

    Args:
        text: Input text
        patterns: Pattern names to apply (defaults to all patterns)
        replacement: Replacement string for redacted content

    Returns:
        Redacted text

    Example:
        >>> redact_text("wifi password: hunter2", patterns=("password_field",))
        'wifi password: [REDACTED]'
    """
    if not text:
        return text

    redacted = text
    for pattern_name in patterns:
        pattern = PATTERNS.get(pattern_name)
        if pattern is None:
            continue
        if pattern_name in _KEEP_LABEL:
            redacted = pattern.sub(lambda m: f"{m.group(1)}: {replacement}", redacted)
        elif pattern_name == "token":
            redacted = pattern.sub(lambda m: f"{m.group(1).rstrip()} {replacement}", redacted)
        else:
            redacted = pattern.sub(replacement, redacted)

    return redacted


def is_sensitive(
    text: str,
    *,
    patterns: tuple[str, ...] = _ALL_PATTERN_NAMES
) -> bool:
    """True if any credential pattern matches."""
    if not text:
        return False
    return any(PATTERNS[name].search(text) for name in patterns if name in PATTERNS)


def get_redaction_summary(
    text: str,
    *,
    patterns: tuple[str, ...] = _ALL_PATTERN_NAMES
) -> dict[str, int]:
    """
    Count matches per pattern name.

    Example:
        >>> get_redaction_summary("pwd=abc token: xyz")
        {'password_field': 1, 'token': 1}
    """
    if not text:
        return {}

    summary = {}
    for pattern_name in patterns:
        if pattern_name in PATTERNS:
            matches = PATTERNS[pattern_name].findall(text)
            if matches:
                summary[pattern_name] = len(matches)

    return summary
