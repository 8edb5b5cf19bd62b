import openai
import pytest

from app.chat_service import ChatService, validate_message
from app.config import Settings
from app.errors import ChatError, ErrorKind
from app.prompts import DEFAULT_INTENT_REPLIES
from helpers import LLMRegistry, ModelsClient, connection_error, status_error


def make_service(outcomes, **overrides):
    settings = Settings(
        OPENAI_API_KEY="sk-test-secret",
        LLM_MODEL="gpt-4",
        LLM_FALLBACK_MODELS="gpt-3.5-turbo",
        **overrides,
    )
    registry = LLMRegistry(outcomes)
    svc = ChatService(settings, llm_factory=registry, intent_replies=DEFAULT_INTENT_REPLIES)
    return svc, registry


@pytest.mark.parametrize("raw", [None, "", "   \n\t", 42, ["hi"], {"text": "hi"}])
def test_validate_message_rejects(raw):
    with pytest.raises(ChatError) as ei:
        validate_message(raw)
    assert ei.value.kind is ErrorKind.INVALID_INPUT
    assert ei.value.status_code == 400
    assert ei.value.reply == "Please provide a valid message."


def test_validate_message_trims():
    assert validate_message("  hello  ") == "hello"


def test_intent_short_circuits_model():
    svc, reg = make_service({"gpt-4": "should not be used"})
    res = svc.answer("My doorbell is BROKEN")
    assert res.source == "intent"
    assert res.intent == "return"
    assert res.reply == DEFAULT_INTENT_REPLIES["return"]
    assert reg.built == []


def test_intents_can_be_disabled():
    svc, reg = make_service({"gpt-4": "model answer"}, ENABLE_INTENTS=False)
    res = svc.answer("warranty?")
    assert res.source == "llm"
    assert reg.calls("gpt-4") == 1


def test_intent_without_reply_falls_through_to_model():
    settings = Settings(OPENAI_API_KEY="sk-test", LLM_FALLBACK_MODELS="")
    reg = LLMRegistry({"gpt-4": "from model"})
    svc = ChatService(settings, llm_factory=reg, intent_replies={"warranty": "w"})
    res = svc.answer("how do I install it")
    assert res.reply == "from model"
    assert reg.calls("gpt-4") == 1


def test_success_returns_trimmed_completion():
    svc, reg = make_service({"gpt-4": "  Hello from Maizic!  \n"})
    res = svc.answer("  Does the camera record at night?  ")
    assert res.reply == "Hello from Maizic!"
    assert res.model == "gpt-4"
    sent = reg.llms["gpt-4"].calls[0]
    assert [m.type for m in sent] == ["system", "human"]
    assert "Maizic Smarthome" in sent[0].content
    assert sent[1].content == "Does the camera record at night?"


def test_llm_is_cached_per_model():
    svc, reg = make_service({"gpt-4": "ok"})
    svc.answer("question one")
    svc.answer("question two")
    assert reg.built == ["gpt-4"]
    assert reg.calls("gpt-4") == 2


def test_fallback_on_model_unavailable():
    svc, reg = make_service(
        {"gpt-4": status_error(openai.NotFoundError, 404), "gpt-3.5-turbo": "fallback reply"}
    )
    res = svc.answer("Tell me about smart plugs")
    assert res.reply == "fallback reply"
    assert res.model == "gpt-3.5-turbo"
    assert reg.calls("gpt-4") == 1


def test_last_failure_surfaces_when_chain_exhausted():
    svc, reg = make_service(
        {
            "gpt-4": status_error(openai.NotFoundError, 404),
            "gpt-3.5-turbo": status_error(openai.BadRequestError, 400, code="model_not_found"),
        }
    )
    with pytest.raises(ChatError) as ei:
        svc.answer("Tell me about smart plugs")
    assert ei.value.kind is ErrorKind.MODEL_UNAVAILABLE
    assert ei.value.model == "gpt-3.5-turbo"
    assert ei.value.upstream_status == 400


def test_non_model_failure_does_not_fall_back():
    svc, reg = make_service(
        {"gpt-4": status_error(openai.AuthenticationError, 401), "gpt-3.5-turbo": "unused"}
    )
    with pytest.raises(ChatError) as ei:
        svc.answer("Hello there")
    assert ei.value.kind is ErrorKind.UNAUTHORIZED
    assert ei.value.status_code == 500
    assert "gpt-3.5-turbo" not in reg.built


@pytest.mark.parametrize(
    "exc,kind",
    [
        (status_error(openai.RateLimitError, 429), ErrorKind.RATE_LIMITED),
        (status_error(openai.BadRequestError, 400), ErrorKind.BAD_REQUEST),
        (connection_error(), ErrorKind.NETWORK),
        (ValueError("weird"), ErrorKind.UNKNOWN),
    ],
)
def test_failures_are_classified(exc, kind):
    svc, _ = make_service({"gpt-4": exc})
    with pytest.raises(ChatError) as ei:
        svc.answer("Hello there")
    assert ei.value.kind is kind


def test_empty_completion_is_an_error():
    svc, _ = make_service({"gpt-4": "   "})
    with pytest.raises(ChatError) as ei:
        svc.answer("Hello there")
    assert ei.value.kind is ErrorKind.UNKNOWN


def test_check_credentials_ok():
    settings = Settings(OPENAI_API_KEY="sk-test")
    svc = ChatService(settings, models_client=ModelsClient(), intent_replies={})
    assert svc.check_credentials() == {"ok": True}


def test_check_credentials_rejected():
    settings = Settings(OPENAI_API_KEY="sk-test")
    client = ModelsClient(error=status_error(openai.AuthenticationError, 401))
    svc = ChatService(settings, models_client=client, intent_replies={})
    assert svc.check_credentials() == {"ok": False, "kind": "unauthorized"}


def test_check_credentials_without_key():
    settings = Settings(OPENAI_API_KEY="")
    svc = ChatService(settings, models_client=ModelsClient(), intent_replies={})
    assert svc.check_credentials()["ok"] is False


def test_answer_validates_before_touching_models():
    svc, reg = make_service({"gpt-4": "unused"})
    with pytest.raises(ChatError) as ei:
        svc.answer("   ")
    assert ei.value.kind is ErrorKind.INVALID_INPUT
    assert reg.built == []
