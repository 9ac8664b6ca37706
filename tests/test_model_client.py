"""Tests for the OpenAI-compatible model backend."""
from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError, APITimeoutError, AuthenticationError, BadRequestError, RateLimitError

from app.core.errors import ModelUnavailable
from app.services.context import AssembledPrompt, GenerationParams
from app.services.model_client import OpenAIChatModel, classify_error

REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def status_error(error_cls, status_code, message):
    return error_cls(message, response=httpx.Response(status_code, request=REQUEST), body=None)


class FakeCompletions:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def completion(content, finish_reason="stop"):
    choice = SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)
    return SimpleNamespace(choices=[choice])


PROMPT = AssembledPrompt(
    history=[("user", "hello"), ("assistant", "hi there")],
    live_message="[System: Be brief.]\n\nUser: how are you?",
)


def test_generate_sends_history_then_live_message():
    completions = FakeCompletions(response=completion("fine"))
    model = OpenAIChatModel(api_key="k", model="test-model", timeout=5, client=fake_client(completions))

    reply = model.generate(PROMPT, GenerationParams(max_output_tokens=2048, temperature=0.7, top_p=0.8))

    assert reply == "fine"
    request = completions.requests[0]
    assert request["model"] == "test-model"
    assert request["messages"] == [
        {"role": "user", "content": "hello"},
        {"role": "assistant", "content": "hi there"},
        {"role": "user", "content": "[System: Be brief.]\n\nUser: how are you?"},
    ]
    assert request["max_tokens"] == 2048
    assert request["temperature"] == 0.7
    assert request["top_p"] == 0.8
    assert request["timeout"] == 5
    assert "extra_body" not in request


def test_generate_forwards_top_k_when_set():
    completions = FakeCompletions(response=completion("ok"))
    model = OpenAIChatModel(api_key="k", model="m", client=fake_client(completions))

    model.generate(PROMPT, GenerationParams(top_k=40))

    assert completions.requests[0]["extra_body"] == {"top_k": 40}


def test_native_system_instruction_becomes_system_message():
    completions = FakeCompletions(response=completion("ok"))
    model = OpenAIChatModel(api_key="k", model="m", client=fake_client(completions))
    prompt = AssembledPrompt(history=[], live_message="hi", system_instruction="You are a pirate.")

    model.generate(prompt, GenerationParams())

    assert completions.requests[0]["messages"] == [
        {"role": "system", "content": "You are a pirate."},
        {"role": "user", "content": "hi"},
    ]


def test_missing_api_key_is_unavailable():
    model = OpenAIChatModel(api_key=None, model="m")

    with pytest.raises(ModelUnavailable) as failure:
        model.generate(PROMPT, GenerationParams())

    assert failure.value.reason == "not_configured"


@pytest.mark.parametrize(
    "error, reason",
    [
        (APITimeoutError(request=REQUEST), "timeout"),
        (APIConnectionError(request=REQUEST), "network"),
        (status_error(AuthenticationError, 401, "Incorrect API key provided"), "invalid_credentials"),
        (status_error(RateLimitError, 429, "Rate limit reached"), "quota_exceeded"),
        (status_error(BadRequestError, 400, "Blocked by safety settings"), "content_blocked"),
        (status_error(BadRequestError, 400, "Unsupported parameter"), "bad_request"),
    ],
)
def test_sdk_errors_become_model_unavailable(error, reason):
    model = OpenAIChatModel(api_key="k", model="m", client=fake_client(FakeCompletions(error=error)))

    with pytest.raises(ModelUnavailable) as failure:
        model.generate(PROMPT, GenerationParams())

    assert failure.value.reason == reason
    assert classify_error(error) == reason


def test_content_filter_finish_reason_is_unavailable():
    completions = FakeCompletions(response=completion(None, finish_reason="content_filter"))
    model = OpenAIChatModel(api_key="k", model="m", client=fake_client(completions))

    with pytest.raises(ModelUnavailable) as failure:
        model.generate(PROMPT, GenerationParams())

    assert failure.value.reason == "content_blocked"


def test_empty_reply_is_unavailable():
    completions = FakeCompletions(response=completion(""))
    model = OpenAIChatModel(api_key="k", model="m", client=fake_client(completions))

    with pytest.raises(ModelUnavailable) as failure:
        model.generate(PROMPT, GenerationParams())

    assert failure.value.reason == "empty_response"


def test_default_client_disables_sdk_retries():
    model = OpenAIChatModel(api_key="k", model="m", base_url="https://api.example.test/v1", timeout=7)

    client = model._get_client()

    assert client.max_retries == 0
    assert str(client.base_url).startswith("https://api.example.test/v1")


def test_unexpected_client_error_is_unavailable():
    completions = FakeCompletions(error=RuntimeError("socket reset"))
    model = OpenAIChatModel(api_key="k", model="m", client=fake_client(completions))

    with pytest.raises(ModelUnavailable) as failure:
        model.generate(PROMPT, GenerationParams())

    assert failure.value.reason == "api_error"
    assert isinstance(failure.value.__cause__, RuntimeError)
