"""
Tests for the HTTP provider adapters.

Upstream APIs are replaced with httpx.MockTransport; backoff is zeroed so
retries run instantly.
"""

import json

import httpx
import pytest

from chat_relay.config import Settings
from chat_relay.errors import AdapterError, ProviderUnavailableError
from chat_relay.protocols import ResponseProvider
from chat_relay.repositories import (
    ClaudeProvider,
    CopilotProvider,
    DisabledProvider,
    HTTPProvider,
    HuggingFaceProvider,
    OpenAIProvider,
)
from chat_relay.repositories.claude_provider import EMPTY_REPLY
from chat_relay.repositories.huggingface_provider import parse_generation
from chat_relay.repositories.openai_provider import parse_completion


class Upstream:
    """Scripted upstream: replays responses in order and records requests."""

    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def payload(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


def completion(content: str) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


# -- OpenAI --


async def test_openai_request_shape():
    upstream = Upstream(completion("  Hello!  "))
    provider = OpenAIProvider(
        api_key="sk-test",
        model="gpt-test",
        base_url="https://api.test/v1/",
        backoff_base_ms=0,
        client=upstream.client,
    )

    assert await provider.respond("hi") == "Hello!"

    request = upstream.requests[0]
    assert str(request.url) == "https://api.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert upstream.payload()["model"] == "gpt-test"
    assert upstream.payload()["messages"] == [{"role": "user", "content": "hi"}]


async def test_openai_retries_transient_errors():
    upstream = Upstream(httpx.Response(500, text="busy"), httpx.Response(502), completion("ok"))
    provider = OpenAIProvider(api_key="k", retries=2, backoff_base_ms=0, client=upstream.client)

    assert await provider.respond("hi") == "ok"
    assert len(upstream.requests) == 3


async def test_openai_gives_up_after_retries():
    upstream = Upstream(httpx.Response(503, text="down"))
    provider = OpenAIProvider(api_key="k", retries=2, backoff_base_ms=0, client=upstream.client)

    with pytest.raises(AdapterError, match="openai API error 503"):
        await provider.respond("hi")
    assert len(upstream.requests) == 3


async def test_openai_transport_error_is_adapter_error():
    upstream = Upstream(httpx.ConnectError("refused"))
    provider = OpenAIProvider(api_key="k", retries=0, backoff_base_ms=0, client=upstream.client)

    with pytest.raises(AdapterError, match="request failed"):
        await provider.respond("hi")


async def test_non_json_body_is_adapter_error():
    upstream = Upstream(httpx.Response(200, text="<html>"))
    provider = OpenAIProvider(api_key="k", retries=0, backoff_base_ms=0, client=upstream.client)

    with pytest.raises(AdapterError, match="non-JSON"):
        await provider.respond("hi")


def test_parse_completion_falls_back_to_raw_json():
    assert parse_completion({"choices": []}) == json.dumps({"choices": []})
    assert parse_completion({"choices": [{"message": {"content": " x "}}]}) == "x"


def test_openai_create():
    assert isinstance(OpenAIProvider.create(Settings(openai_api_key=None)), DisabledProvider)

    provider = OpenAIProvider.create(Settings(openai_api_key="sk", openai_model="gpt-x"))
    assert isinstance(provider, OpenAIProvider)
    assert provider.model == "gpt-x"


# -- Hugging Face --


async def test_huggingface_request_shape():
    upstream = Upstream(httpx.Response(200, json=[{"generated_text": "Hey"}]))
    provider = HuggingFaceProvider(
        api_key="hf-test",
        model="org/model",
        max_new_tokens=50,
        backoff_base_ms=0,
        client=upstream.client,
    )

    assert await provider.respond("hi") == "Hey"

    request = upstream.requests[0]
    assert str(request.url) == f"{HuggingFaceProvider.API_URL}/org/model"
    assert request.headers["Authorization"] == "Bearer hf-test"
    assert upstream.payload() == {"inputs": "hi", "parameters": {"max_new_tokens": 50}}


async def test_huggingface_attempts_are_total_calls():
    upstream = Upstream(httpx.Response(500))
    provider = HuggingFaceProvider(api_key="k", model="m", attempts=2, backoff_base_ms=0, client=upstream.client)

    with pytest.raises(AdapterError):
        await provider.respond("hi")
    assert len(upstream.requests) == 2


@pytest.mark.parametrize(
    "data, expected",
    [
        (None, ""),
        ("plain", "plain"),
        ([{"generated_text": "a"}], "a"),
        (["a", "b"], "a\nb"),
        ({"generated_text": "b"}, "b"),
        ({"unexpected": 1}, json.dumps({"unexpected": 1})),
    ],
)
def test_parse_generation_shapes(data, expected):
    assert parse_generation(data) == expected


def test_parse_generation_error_field():
    with pytest.raises(AdapterError, match="model is loading"):
        parse_generation({"error": "model is loading"})


# -- Claude --


async def test_claude_posts_conversation():
    upstream = Upstream(httpx.Response(200, json={"reply": "Sure."}))
    provider = ClaudeProvider(api_url="https://claude.test/chat", api_key="ck", backoff_base_ms=0, client=upstream.client)

    assert await provider.respond("tell me a story") == "Sure."
    assert upstream.payload() == {"conversation": [{"role": "user", "content": "tell me a story"}]}
    assert upstream.requests[0].headers["Authorization"] == "Bearer ck"


async def test_claude_empty_reply():
    upstream = Upstream(httpx.Response(200, json={}))
    provider = ClaudeProvider(api_url="https://claude.test/chat", backoff_base_ms=0, client=upstream.client)

    assert await provider.respond("hi") == EMPTY_REPLY
    assert "Authorization" not in upstream.requests[0].headers


async def test_claude_converse_keeps_history():
    upstream = Upstream(httpx.Response(200, json={"reply": "one"}), httpx.Response(200, json={"reply": "two"}))
    provider = ClaudeProvider(api_url="https://claude.test/chat", backoff_base_ms=0, client=upstream.client)

    _, history = await provider.converse("first")
    reply, history = await provider.converse("second", history)

    assert reply == "two"
    assert [turn["content"] for turn in history] == ["first", "one", "second", "two"]
    assert len(upstream.payload()["conversation"]) == 3


async def test_claude_converse_retries():
    upstream = Upstream(httpx.Response(500), httpx.Response(200, json={"reply": "ok"}))
    provider = ClaudeProvider(api_url="https://claude.test/chat", retries=1, backoff_base_ms=0, client=upstream.client)

    reply, _ = await provider.converse("hi")

    assert reply == "ok"
    assert len(upstream.requests) == 2


def test_claude_create():
    assert isinstance(ClaudeProvider.create(Settings(claude_api_url=None)), DisabledProvider)
    assert isinstance(ClaudeProvider.create(Settings(claude_api_url="https://claude.test")), ClaudeProvider)


# -- Copilot --


async def test_copilot_posts_task():
    upstream = Upstream(httpx.Response(200, json={"result": "Booked for Friday"}))
    provider = CopilotProvider(api_url="https://copilot.test/task", model="planner", backoff_base_ms=0, client=upstream.client)

    assert await provider.respond("book a table") == "Booked for Friday"
    assert upstream.payload() == {"task": "book a table", "model": "planner"}


async def test_copilot_missing_result():
    upstream = Upstream(httpx.Response(200, json={"status": "queued"}))
    provider = CopilotProvider(api_url="https://copilot.test/task", retries=0, backoff_base_ms=0, client=upstream.client)

    with pytest.raises(AdapterError, match="no result"):
        await provider.respond("calculate 2+2")


def test_copilot_create():
    assert isinstance(CopilotProvider.create(Settings(copilot_api_url=None)), DisabledProvider)
    assert isinstance(CopilotProvider.create(Settings(copilot_api_url="https://copilot.test")), CopilotProvider)


# -- Disabled and lifecycle --


async def test_disabled_provider_fails_fast():
    provider = DisabledProvider("openai", "gpt-test", "OPENAI_API_KEY not set")

    assert isinstance(provider, ResponseProvider)
    assert not provider.is_available()
    with pytest.raises(ProviderUnavailableError, match="OPENAI_API_KEY not set"):
        await provider.respond("hi")


async def test_close_releases_client():
    upstream = Upstream(completion("ok"))
    client = upstream.client
    provider = OpenAIProvider(api_key="k", client=client)

    await provider.close()

    assert client.is_closed


# -- Reply types and construction --


async def test_claude_non_string_reply_is_adapter_error():
    upstream = Upstream(httpx.Response(200, json={"reply": {"text": "hi"}}))
    provider = ClaudeProvider(api_url="https://claude.test/chat", retries=0, backoff_base_ms=0, client=upstream.client)

    with pytest.raises(AdapterError, match="non-string reply"):
        await provider.respond("hi")


@pytest.mark.parametrize(
    "data",
    [
        [{"generated_text": 7}],
        {"generated_text": ["a"]},
    ],
)
def test_parse_generation_never_returns_non_strings(data):
    assert parse_generation(data) == json.dumps(data)


async def test_huggingface_explicit_attempts_are_respected():
    """attempts=0 still means a single call, not the configured default."""
    upstream = Upstream(httpx.Response(500))
    provider = HuggingFaceProvider(api_key="k", model="m", attempts=0, backoff_base_ms=0, client=upstream.client)

    with pytest.raises(AdapterError):
        await provider.respond("hi")
    assert len(upstream.requests) == 1


def test_http_provider_is_abstract():
    with pytest.raises(TypeError):
        HTTPProvider(model="m")
