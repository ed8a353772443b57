import json

import httpx
import pytest

from credibot.ai_feature.service import CompletionError, CompletionService


def completion_body(content="Hello!", choices=True):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "gpt-3.5-turbo-0125",
        "choices": (
            [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop",
                }
            ]
            if choices
            else []
        ),
        "usage": {"prompt_tokens": 12, "completion_tokens": 3, "total_tokens": 15},
    }


def service(handler, api_key="sk-test"):
    return CompletionService(api_key=api_key, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_complete_sends_system_and_user_messages():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json=completion_body("SQL: SELECT nome FROM clientes"))

    completion = await service(handler).complete(
        "List clients",
        model="gpt-3.5-turbo",
        max_tokens=150,
        temperature=0.1,
        system="route this",
    )

    assert completion.text == "SQL: SELECT nome FROM clientes"
    assert completion.model == "gpt-3.5-turbo-0125"
    assert completion.usage.total_tokens == 15
    assert seen["path"].endswith("/chat/completions")
    assert seen["auth"] == "Bearer sk-test"
    body = seen["body"]
    assert body["model"] == "gpt-3.5-turbo"
    assert body["max_tokens"] == 150
    assert body["temperature"] == 0.1
    assert body["messages"] == [
        {"role": "system", "content": "route this"},
        {"role": "user", "content": "List clients"},
    ]


@pytest.mark.asyncio
async def test_complete_without_system_sends_only_user_message():
    seen = {}

    def handler(request: httpx.Request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=completion_body())

    await service(handler).complete("Hi", model="gpt-3.5-turbo", max_tokens=10, temperature=0.7)

    assert seen["body"]["messages"] == [{"role": "user", "content": "Hi"}]


@pytest.mark.asyncio
async def test_api_error_becomes_completion_error():
    calls = []

    def handler(request: httpx.Request):
        calls.append(request)
        return httpx.Response(500, json={"error": {"message": "server error"}})

    with pytest.raises(CompletionError):
        await service(handler).complete("Hi", model="m", max_tokens=10, temperature=0)

    # no retries
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_empty_choices():
    def handler(request: httpx.Request):
        return httpx.Response(200, json=completion_body(choices=False))

    with pytest.raises(CompletionError) as exc_info:
        await service(handler).complete("Hi", model="m", max_tokens=10, temperature=0)
    assert "no response" in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_api_key():
    def handler(request: httpx.Request):
        raise AssertionError("no request expected")

    with pytest.raises(CompletionError) as exc_info:
        await service(handler, api_key="").complete(
            "Hi", model="m", max_tokens=10, temperature=0
        )
    assert "not configured" in str(exc_info.value)
