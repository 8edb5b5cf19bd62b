"""
Chat request handling for the Maizic customer-care bot.

Provides the public entry points used by the API:
- validate_message(raw) -> str
- ChatService.answer(message) -> ChatResult    # intent fast path, then the model chain
- ChatService.check_credentials() -> dict      # read-only credential probe for /debug
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

import openai
from langchain_openai import ChatOpenAI

import app.prompts as prompts
from app.config import Settings
from app.errors import ChatError, ErrorKind, from_upstream, redact
from app.intent_helpers import canned_reply

logger = logging.getLogger(__name__)

LLMFactory = Callable[[str], Any]


@dataclass(frozen=True)
class ChatResult:
    reply: str
    source: str  # "intent" or "llm"
    intent: Optional[str] = None
    model: Optional[str] = None


def validate_message(raw: Any) -> str:
    """Return the trimmed message or raise ChatError(INVALID_INPUT)."""
    if not isinstance(raw, str) or not raw.strip():
        raise ChatError(ErrorKind.INVALID_INPUT)
    return raw.strip()


def _content_text(resp: Any) -> str:
    content = getattr(resp, "content", resp)
    if isinstance(content, list):
        # Content blocks: keep the text parts
        content = "".join(
            b.get("text", "") if isinstance(b, dict) else str(b) for b in content
        )
    return str(content or "").strip()


class ChatService:
    """Resolves a validated message to a reply."""

    def __init__(
        self,
        settings: Settings,
        *,
        llm_factory: Optional[LLMFactory] = None,
        models_client: Optional[Any] = None,
        intent_replies: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.settings = settings
        self.system_prompt = prompts.system_prompt(settings.SYSTEM_PROMPT)
        if intent_replies is None:
            intent_replies = prompts.load_intent_replies(settings.INTENT_REPLIES_PATH)
        self.intent_replies = intent_replies
        self._llm_factory = llm_factory or self._build_llm
        self._models_client = models_client
        self._llms: Dict[str, Any] = {}

    # ---------------- model plumbing ----------------

    def _build_llm(self, model: str) -> ChatOpenAI:
        s = self.settings
        kwargs: Dict[str, Any] = {
            "model": model,
            "temperature": s.LLM_TEMPERATURE,
            "max_tokens": s.LLM_MAX_TOKENS,
            "timeout": s.LLM_TIMEOUT_SECONDS,
            "max_retries": s.LLM_MAX_RETRIES,
            "api_key": s.OPENAI_API_KEY,
        }
        if s.OPENAI_BASE_URL:
            kwargs["base_url"] = s.OPENAI_BASE_URL
        return ChatOpenAI(**kwargs)

    def _llm(self, model: str) -> Any:
        if model not in self._llms:
            self._llms[model] = self._llm_factory(model)
        return self._llms[model]

    def _log_failure(self, model: str, err: ChatError, exc: BaseException) -> None:
        logger.warning(
            "completion failed model=%s kind=%s error=%s",
            model,
            err.kind.value,
            redact(str(exc), self.settings.OPENAI_API_KEY),
        )

    # ---------------- public API ----------------

    @property
    def models(self) -> List[str]:
        return self.settings.model_chain

    def answer(self, message: str) -> ChatResult:
        q = validate_message(message)

        if self.settings.ENABLE_INTENTS:
            intent, reply = canned_reply(q, self.intent_replies)
            if reply:
                logger.info("intent fast path intent=%s", intent)
                return ChatResult(reply=reply, source="intent", intent=intent)

        return self.complete(q)

    def complete(self, message: str) -> ChatResult:
        """Ask the model chain for a reply; the first success wins.

        Only a model-unavailable failure moves on to the next identifier; the
        last failure is raised when the chain is exhausted.
        """
        messages = prompts.build_messages(self.system_prompt, message)
        last: Optional[ChatError] = None

        for model in self.models:
            try:
                resp = self._llm(model).invoke(messages)
            except Exception as exc:
                err = from_upstream(exc, model=model)
                self._log_failure(model, err, exc)
                if err.kind is not ErrorKind.MODEL_UNAVAILABLE:
                    raise err from exc
                last = err
                continue

            text = _content_text(resp)
            if not text:
                logger.warning("empty completion model=%s", model)
                raise ChatError(ErrorKind.UNKNOWN, model=model)
            return ChatResult(reply=text, source="llm", model=model)

        raise last or ChatError(ErrorKind.MODEL_UNAVAILABLE)

    def check_credentials(self) -> Dict[str, Any]:
        """Confirm the credential is accepted by listing models."""
        if not self.settings.has_credentials:
            return {"ok": False, "kind": ErrorKind.UNAUTHORIZED.value}
        client = self._models_client
        if client is None:
            client = openai.OpenAI(
                api_key=self.settings.OPENAI_API_KEY,
                base_url=self.settings.OPENAI_BASE_URL,
                timeout=self.settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
        try:
            client.models.list()
        except Exception as exc:
            err = from_upstream(exc)
            logger.warning(
                "credential check failed kind=%s error=%s",
                err.kind.value,
                redact(str(exc), self.settings.OPENAI_API_KEY),
            )
            return {"ok": False, "kind": err.kind.value}
        return {"ok": True}
