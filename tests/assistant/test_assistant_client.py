"""Tests for the OpenAI Assistants adapter."""

from types import SimpleNamespace

import httpx
import openai
import pytest

from lucia.assistant.client import AssistantClient
from lucia.core.errors import UpstreamFailure


class Recorder:
    """Callable that records its arguments and returns a fixed value."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error:
            raise self.error
        return self.result


def make_openai(**overrides):
    threads = SimpleNamespace(
        create=Recorder(SimpleNamespace(id="thread_1")),
        messages=SimpleNamespace(
            create=Recorder(SimpleNamespace(id="msg_1")),
            list=Recorder(["m1", "m2"]),
        ),
        runs=SimpleNamespace(
            create=Recorder(SimpleNamespace(id="run_1", status="queued")),
            retrieve=Recorder(SimpleNamespace(id="run_1", status="in_progress")),
            submit_tool_outputs=Recorder(SimpleNamespace(id="run_1", status="queued")),
        ),
    )
    for path, value in overrides.items():
        target, name = path.rsplit(".", 1)
        obj = threads
        for part in target.split(".") if target else []:
            obj = getattr(obj, part)
        setattr(obj, name, value)
    return SimpleNamespace(beta=SimpleNamespace(threads=threads))


def test_create_thread_returns_id():
    sdk = make_openai()
    assert AssistantClient(openai_client=sdk).create_thread() == "thread_1"


def test_message_and_run_wiring():
    sdk = make_openai()
    client = AssistantClient(openai_client=sdk)
    threads = sdk.beta.threads

    client.add_user_message("thread_1", "Oi")
    client.create_run("thread_1", "asst_1")
    client.retrieve_run("thread_1", "run_1")
    client.submit_tool_outputs("thread_1", "run_1", [{"tool_call_id": "c1", "output": "{}"}])

    assert threads.messages.create.calls == [(("thread_1",), {"role": "user", "content": "Oi"})]
    assert threads.runs.create.calls == [(("thread_1",), {"assistant_id": "asst_1"})]
    assert threads.runs.retrieve.calls == [(("run_1",), {"thread_id": "thread_1"})]
    assert threads.runs.submit_tool_outputs.calls == [
        (("run_1",), {"thread_id": "thread_1", "tool_outputs": [{"tool_call_id": "c1", "output": "{}"}]})
    ]


def test_list_run_messages_filters_by_run_oldest_first():
    sdk = make_openai()

    messages = AssistantClient(openai_client=sdk).list_run_messages("thread_1", "run_1")

    assert messages == ["m1", "m2"]
    assert sdk.beta.threads.messages.list.calls == [(("thread_1",), {"run_id": "run_1", "order": "asc"})]


def test_connection_error_becomes_upstream_failure():
    request = httpx.Request("POST", "https://api.openai.com/v1/threads")
    sdk = make_openai(**{".create": Recorder(error=openai.APIConnectionError(request=request))})

    with pytest.raises(UpstreamFailure) as excinfo:
        AssistantClient(openai_client=sdk).create_thread()

    assert excinfo.value.status_code is None


def test_status_error_keeps_status_code():
    request = httpx.Request("POST", "https://api.openai.com/v1/threads/thread_1/runs")
    response = httpx.Response(429, request=request)
    error = openai.RateLimitError("Rate limit reached", response=response, body=None)
    sdk = make_openai(**{"runs.create": Recorder(error=error)})

    with pytest.raises(UpstreamFailure) as excinfo:
        AssistantClient(openai_client=sdk).create_run("thread_1", "asst_1")

    assert excinfo.value.status_code == 429


def _message_json(index):
    return {
        "id": f"msg_{index}",
        "object": "thread.message",
        "created_at": 1700000000 + index,
        "thread_id": "thread_1",
        "run_id": "run_1",
        "assistant_id": "asst_1",
        "role": "assistant",
        "status": "completed",
        "content": [{"type": "text", "text": {"value": f"resposta {index}", "annotations": []}}],
        "attachments": [],
        "metadata": {},
    }


def test_list_run_messages_follows_every_page():
    """Messages beyond the first page are fetched, so the newest one is last."""
    seen_after = []

    def handler(request):
        after = request.url.params.get("after")
        seen_after.append(after)
        if after is None:
            data, has_more = [_message_json(i) for i in range(1, 21)], True
        else:
            data, has_more = [_message_json(21)], False
        return httpx.Response(200, json={
            "object": "list",
            "data": data,
            "first_id": data[0]["id"],
            "last_id": data[-1]["id"],
            "has_more": has_more,
        })

    sdk = openai.OpenAI(
        api_key="sk-test",
        base_url="https://api.openai.test/v1",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        max_retries=0,
    )

    messages = AssistantClient(openai_client=sdk).list_run_messages("thread_1", "run_1")

    assert len(messages) == 21
    assert messages[-1].id == "msg_21"
    assert seen_after == [None, "msg_20"]
