import asyncio
import json

import pytest
from langchain_core.messages import AIMessage, AIMessageChunk, HumanMessage, ToolMessage

from assistant import server
from assistant.config import ConfigError
from assistant.envelope import ok


class FakeGraph:
    """Replays a fixed astream_events sequence."""

    def __init__(self, events=None, result=None, error=None):
        self.events = events or []
        self.result = result
        self.error = error
        self.state = None

    async def astream_events(self, state, version):
        self.state = state
        for event in self.events:
            yield event
        if self.error:
            raise self.error

    async def ainvoke(self, state):
        self.state = state
        return {"messages": state["messages"] + self.result}


def _collect(gen):
    async def run():
        return [event async for event in gen]
    return asyncio.run(run())


@pytest.fixture
def graph(monkeypatch):
    def install(fake):
        monkeypatch.setattr(server, "_graph", fake)
        return fake
    return install


def test_prepare_history():
    history = [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "system", "content": "ignored"},
        {"role": "user", "content": ""},
    ]
    messages = server._prepare_history(history)
    assert [type(m) for m in messages] == [HumanMessage, AIMessage]


def test_tool_output_text():
    assert server.tool_output_text(ToolMessage(content="abc", tool_call_id="1")) == "abc"
    assert server.tool_output_text([{"type": "text", "text": '{"a": '}, {"type": "text", "text": "1}"}]) == '{"a": 1}'
    assert server.tool_output_text(None) == ""


def test_stream_emits_chunks_tool_results_and_done(graph):
    envelope = json.dumps(ok("list_stacks", count=0, stacks=[]))
    fake = graph(FakeGraph(events=[
        {"event": "on_tool_start", "name": "query_aws_resources", "data": {}},
        {"event": "on_tool_end", "name": "query_aws_resources",
         "data": {"output": ToolMessage(content=envelope, tool_call_id="1", name="query_aws_resources")}},
        {"event": "on_chat_model_stream", "name": "ChatOpenAI", "data": {"chunk": AIMessageChunk(content="No ")}},
        {"event": "on_chat_model_stream", "name": "ChatOpenAI", "data": {"chunk": AIMessageChunk(content="stacks.")}},
    ]))

    events = _collect(server.run_agent_stream("list stacks", [], model_id="chat-model", hints={"city": "Oslo"}))
    types = [e["type"] for e in events]

    assert types == ["status", "status", "tool-result", "chunk", "chunk", "done"]
    tool_result = events[2]
    assert tool_result["tool"] == "query_aws_resources"
    assert tool_result["action"] == "list_stacks"
    assert "No stacks found" in tool_result["html"]
    assert "".join(e["text"] for e in events if e["type"] == "chunk") == "No stacks."
    assert fake.state["hints"] == {"city": "Oslo"}
    assert fake.state["tool_steps"] == 0


def test_stream_survives_unexpected_mcp_payload(graph):
    graph(FakeGraph(events=[
        {"event": "on_tool_end", "name": "searchJiraIssuesUsingJql",
         "data": {"output": ToolMessage(content='{"issues": ["PROJ-1", "PROJ-2"]}', tool_call_id="1",
                                        name="searchJiraIssuesUsingJql")}},
        {"event": "on_chat_model_stream", "name": "ChatOpenAI",
         "data": {"chunk": AIMessageChunk(content="Found 2 issues.")}},
    ]))
    events = _collect(server.run_agent_stream("my issues"))
    assert [e["type"] for e in events] == ["status", "tool-result", "chunk", "done"]
    assert "PROJ-2" in events[1]["html"]
    assert events[2]["text"] == "Found 2 issues."


def test_stream_reasoning_model_sends_stripped_final_answer(graph):
    graph(FakeGraph(events=[
        {"event": "on_chat_model_stream", "name": "ChatOpenAI", "data": {"chunk": AIMessageChunk(content="<think>")}},
        {"event": "on_chain_end", "name": "agent",
         "data": {"output": {"messages": [AIMessage(content="<think>hmm</think>Four.")]}}},
    ]))
    events = _collect(server.run_agent_stream("2+2?", model_id="chat-model-reasoning"))
    chunks = [e["text"] for e in events if e["type"] == "chunk"]
    assert chunks == ["Four."]
    assert events[-1] == {"type": "done"}


def test_stream_reports_errors(graph):
    graph(FakeGraph(error=RuntimeError("model unavailable")))
    events = _collect(server.run_agent_stream("hi"))
    assert events[-1] == {"type": "error", "error": "model unavailable"}


def test_chat_returns_content_and_tool_results(graph):
    envelope = json.dumps(ok("list_log_groups", count=0, logGroups=[]))
    graph(FakeGraph(result=[
        AIMessage(content="", tool_calls=[{"name": "query_aws_resources", "args": {}, "id": "1"}]),
        ToolMessage(content=envelope, tool_call_id="1", name="query_aws_resources"),
        AIMessage(content="You have no log groups."),
    ]))
    result = asyncio.run(server.chat("log groups?"))
    assert result["content"] == "You have no log groups."
    assert result["toolResults"][0]["action"] == "list_log_groups"
    assert asyncio.run(server.run_agent("log groups?")) == "You have no log groups."


def test_health(monkeypatch):
    assert server.health() == {"ok": True, "has_api_key": False}
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    assert server.health()["has_api_key"] is True


def test_jira_endpoint_requires_credentials():
    with pytest.raises(ConfigError):
        server.jira({"action": "search", "query": "bugs"})


def test_cards_endpoint_rerenders_page():
    data = ok("list_s3_buckets", count=6, buckets=[{"bucketName": f"b{i}", "region": "us-east-1"} for i in range(6)])
    html = server.cards({"tool": "query_aws_resources", "data": data, "search": "", "page": "2"})["html"]
    assert "b5" in html and "b0" not in html
    with pytest.raises(ValueError):
        server.cards({"data": data})
