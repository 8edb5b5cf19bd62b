"""Small doubles shared by the test modules."""

import types

import httpx
import openai

_REQ = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def status_error(cls, status: int, code=None, message="upstream said no"):
    body = {"message": message, "code": code} if code else None
    return cls(message, response=httpx.Response(status, request=_REQ), body=body)


def connection_error():
    return openai.APIConnectionError(request=_REQ)


class DummyResp:
    def __init__(self, content: str):
        self.content = content


class ScriptedLLM:
    """LLM stub that returns or raises whatever it was given, recording calls."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    def invoke(self, messages):
        self.calls.append(messages)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return DummyResp(self.outcome)


class LLMRegistry:
    """llm_factory that hands out one ScriptedLLM per model name."""

    def __init__(self, outcomes):
        self.llms = {name: ScriptedLLM(o) for name, o in outcomes.items()}
        self.built = []

    def __call__(self, model):
        self.built.append(model)
        return self.llms[model]

    def calls(self, model):
        return len(self.llms[model].calls)


class ModelsClient:
    def __init__(self, error=None):
        self.error = error
        self.models = types.SimpleNamespace(list=self._list)

    def _list(self):
        if self.error is not None:
            raise self.error
        return []
