"""
Keyword intent detection for the canned-reply fast path.
"""

from __future__ import annotations

from typing import Mapping, Optional, Tuple

WARRANTY = "warranty"
INSTALLATION = "installation"
RETURN = "return"

# ---------------------------
# Keyword tables (priority order matters)
# ---------------------------

_WARRANTY_KEYWORDS = ("warranty",)
_INSTALLATION_KEYWORDS = ("install", "setup")
_RETURN_KEYWORDS = ("return", "replace", "broken")


def _normalize(s: str) -> str:
    return (s or "").strip().lower()


def _contains_any(s: str, keywords) -> bool:
    return any(k in s for k in keywords)


def _is_warranty_query(q: str) -> bool:
    return _contains_any(_normalize(q), _WARRANTY_KEYWORDS)


def _is_installation_query(q: str) -> bool:
    return _contains_any(_normalize(q), _INSTALLATION_KEYWORDS)


def _is_return_query(q: str) -> bool:
    return _contains_any(_normalize(q), _RETURN_KEYWORDS)


_RULES = (
    (WARRANTY, _is_warranty_query),
    (INSTALLATION, _is_installation_query),
    (RETURN, _is_return_query),
)


def detect_intent(text: str) -> Optional[str]:
    """Return the first matching intent key, or None."""
    for intent, matches in _RULES:
        if matches(text):
            return intent
    return None


def canned_reply(
    text: str, replies: Mapping[str, str]
) -> Tuple[Optional[str], Optional[str]]:
    """Resolve ``text`` to (intent, reply).

    The reply is None when no intent matched or the matched intent has no
    configured reply.
    """
    intent = detect_intent(text)
    if intent is None:
        return None, None
    return intent, replies.get(intent)
