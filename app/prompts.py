"""Prompt text for chat interactions (system persona and canned intent replies)."""

from __future__ import annotations

import json
import os
from types import MappingProxyType
from typing import List, Mapping, Optional

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from app.config import ConfigurationError

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful customer care agent for Maizic Smarthome. "
    "Answer questions about Maizic cameras, doorbells and smart plugs in a friendly, "
    "concise tone. If you are unsure, suggest contacting support@maizic.com rather "
    "than guessing."
)

DEFAULT_INTENT_REPLIES = {
    "warranty": (
        "All Maizic Smarthome products come with a 1-year limited warranty from the date "
        "of purchase. To make a claim, email support@maizic.com with your order number "
        "and a short description of the issue."
    ),
    "installation": (
        "You can find step-by-step setup guides in the Maizic Smarthome app under "
        "Help > Installation. Make sure your phone is on a 2.4 GHz Wi-Fi network while "
        "pairing the device."
    ),
    "return": (
        "Sorry to hear that! Products can be returned or replaced within 30 days of "
        "delivery. Please contact support@maizic.com with your order number and we'll "
        "arrange a replacement or refund."
    ),
}


def _read_json(path: str) -> dict:
    if not path or not os.path.isfile(path):
        raise ConfigurationError(f"Intent replies file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not read intent replies from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Intent replies in {path} must be a JSON object")
    return data


def load_intent_replies(path: Optional[str] = None) -> Mapping[str, str]:
    """Return the read-only intent -> canned reply table.

    Entries from ``path`` override the defaults; a blank value drops the intent
    so that it falls through to the model.
    """
    replies = dict(DEFAULT_INTENT_REPLIES)
    if path:
        for key, val in _read_json(path).items():
            if not isinstance(val, str):
                raise ConfigurationError(f"Reply for intent '{key}' must be a string")
            if val.strip():
                replies[str(key).strip().lower()] = val.strip()
            else:
                replies.pop(str(key).strip().lower(), None)
    return MappingProxyType(replies)


def system_prompt(override: Optional[str] = None) -> str:
    return (override or "").strip() or DEFAULT_SYSTEM_PROMPT


def build_messages(prompt: str, message: str) -> List[BaseMessage]:
    return [SystemMessage(content=prompt), HumanMessage(content=message)]
