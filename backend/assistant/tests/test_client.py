from __future__ import annotations

import json

import pytest
import responses

from assistant.client import (
    CompletionClient,
    CompletionError,
    CompletionNotConfigured,
    build_completion_client,
)

BASE_URL = "https://llm.example.test/api/v1"
ENDPOINT = f"{BASE_URL}/chat/completions"


def make_client(api_key="test-key"):
    return CompletionClient(
        api_key,
        base_url=BASE_URL + "/",
        model="test/model",
        app_title="Lendify Tests",
        referer="http://localhost:3000",
    )


def test_complete_returns_reply_text():
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.POST,
            ENDPOINT,
            json={"choices": [{"message": {"content": "  Shiny Drill for Rent \n"}}]},
            status=200,
        )
        text = make_client().complete("title please", system_prompt="be brief", max_tokens=50)

        body = json.loads(rsps.calls[0].request.body)
        headers = rsps.calls[0].request.headers

    assert text == "Shiny Drill for Rent"
    assert body["model"] == "test/model"
    assert body["max_tokens"] == 50
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert headers["Authorization"] == "Bearer test-key"
    assert headers["X-Title"] == "Lendify Tests"


def test_http_error_raises_completion_error():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, ENDPOINT, json={"error": "overloaded"}, status=503)
        with pytest.raises(CompletionError):
            make_client().complete("hello")


@pytest.mark.parametrize(
    "payload",
    [{"choices": []}, {"choices": [{"message": {"content": "   "}}]}, {"unexpected": True}],
)
def test_malformed_payload_raises(payload):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, ENDPOINT, json=payload, status=200)
        with pytest.raises(CompletionError):
            make_client().complete("hello")


def test_missing_key_never_calls_out():
    with responses.RequestsMock() as rsps:
        with pytest.raises(CompletionNotConfigured):
            make_client(api_key="").complete("hello")
        assert len(rsps.calls) == 0


def test_build_completion_client_reads_settings(settings):
    settings.OPENROUTER_API_KEY = "from-settings"
    settings.OPENROUTER_BASE_URL = BASE_URL
    settings.OPENROUTER_MODEL = "test/model"
    client = build_completion_client()
    assert client.is_configured
    assert client.base_url == BASE_URL
    assert client.model == "test/model"
