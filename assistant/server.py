"""
Chat entry points for the HTTP server.

run_agent / run_agent_stream drive the orchestrator graph; the stream
variant yields SSE-ready dicts and renders every tool result as a card.
The remaining functions back the small JSON endpoints of chatbot/server.py.
"""

import logging
import time

from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from assistant import aws_tools, jira_client
from assistant.cards import account, render_tool_result
from assistant.config import ConfigError, get_settings, load_env
from assistant.mcp_client import get_atlassian_tools
from assistant.models import list_models, resolve_model, strip_reasoning
from assistant.orchestrator import create_orchestrator
from assistant.tools import BASE_TOOLS

logger = logging.getLogger(__name__)

load_env()

MAX_HISTORY = 20
CHUNK_SIZE = 200

# Cached compiled graph singleton (built once, reused across requests)
_graph = None


async def _get_graph():
    """Get or create the compiled graph with the AWS, GitHub and Atlassian tools."""
    global _graph
    if _graph is None:
        tools = list(BASE_TOOLS) + list(await get_atlassian_tools())
        logger.info("[server] Building graph with %d tools", len(tools))
        _graph = create_orchestrator(tools)
    return _graph


def reset_graph() -> None:
    global _graph
    _graph = None


def _prepare_history(history: list | None) -> list:
    """Convert raw history dicts to LangChain messages."""
    messages = []
    if history:
        for h in history[-MAX_HISTORY:]:
            role = h.get("role", "user")
            content = h.get("content", "")
            if role == "user" and content:
                messages.append(HumanMessage(content=content))
            elif role == "assistant" and content:
                messages.append(AIMessage(content=content))
    return messages


def _build_initial_state(message: str, history: list | None, model_id: str | None, hints: dict | None) -> dict:
    messages = _prepare_history(history)
    messages.append(HumanMessage(content=message))
    return {
        "messages": messages,
        "model_id": resolve_model(model_id).id,
        "hints": hints or {},
        "tool_steps": 0,
    }


def tool_output_text(output) -> str:
    """Text of a tool result: ToolMessage content or MCP content blocks."""
    content = output.content if isinstance(output, ToolMessage) else output
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(block.get("text", ""))
            else:
                parts.append(str(block))
        return "".join(parts)
    if content is None:
        return ""
    return content if isinstance(content, str) else str(content)


def _message_text(msg: AIMessage) -> str:
    return msg.content if isinstance(msg.content, str) else tool_output_text(msg.content)


async def chat(message: str, history: list = None, model_id: str = None, hints: dict = None) -> dict:
    """Run the graph once and return {content, toolResults}."""
    graph = await _get_graph()
    state = _build_initial_state(message, history, model_id, hints)
    result = await graph.ainvoke(state)

    new_messages = result.get("messages", [])[len(state["messages"]):]
    tool_results = [
        render_tool_result(msg.name, tool_output_text(msg))
        for msg in new_messages
        if isinstance(msg, ToolMessage)
    ]

    content = "No response generated."
    for msg in reversed(new_messages):
        if isinstance(msg, AIMessage) and msg.content:
            content = _message_text(msg)
            break

    return {"content": content, "toolResults": tool_results}


async def run_agent(message: str, history: list = None, model_id: str = None, hints: dict = None) -> str:
    """Run the chat agent and return the final response text.

    Args:
        message: User's message
        history: List of {"role": "user"|"assistant", "content": "..."} dicts
        model_id: Catalog id of the chat model (see models.py)
        hints: Request origin {latitude, longitude, city, country}
    """
    result = await chat(message, history, model_id, hints)
    return result["content"]


async def run_agent_stream(message: str, history: list = None, model_id: str = None, hints: dict = None):
    """Run the chat agent and yield SSE chunks.

    Yields:
        dict with {"type": "status"|"chunk"|"tool-result"|"done"|"error", ...}
    """
    entry = resolve_model(model_id)
    # reasoning replies are stripped of <think> sections before they are sent
    stream_tokens = entry.supports_tools

    try:
        t0 = time.time()
        graph = await _get_graph()
        state = _build_initial_state(message, history, entry.id, hints)
        final_content = ""
        streamed = False

        yield {"type": "status", "text": "Thinking..."}

        async for event in graph.astream_events(state, version="v2"):
            kind = event.get("event", "")
            name = event.get("name", "")

            if kind == "on_chat_model_stream" and stream_tokens:
                chunk_obj = event.get("data", {}).get("chunk")
                if chunk_obj is not None and isinstance(chunk_obj.content, str) and chunk_obj.content:
                    streamed = True
                    yield {"type": "chunk", "text": chunk_obj.content}

            elif kind == "on_tool_start":
                logger.info("[server] tool %s started at %.1fs", name, time.time() - t0)
                yield {"type": "status", "text": f"Running {name}..."}

            elif kind == "on_tool_end":
                logger.info("[server] tool %s finished at %.1fs", name, time.time() - t0)
                output = event.get("data", {}).get("output")
                yield {"type": "tool-result", **render_tool_result(name, tool_output_text(output))}

            elif kind == "on_chain_end" and name == "agent" and not stream_tokens:
                output = event.get("data", {}).get("output") or {}
                for msg in output.get("messages", []):
                    if isinstance(msg, AIMessage) and msg.content:
                        final_content = strip_reasoning(_message_text(msg))

        # Send final content as chunks if not already streamed
        if final_content and not streamed:
            for i in range(0, len(final_content), CHUNK_SIZE):
                yield {"type": "chunk", "text": final_content[i:i + CHUNK_SIZE]}

        logger.info("[server] TOTAL: %.1fs", time.time() - t0)
        yield {"type": "done"}

    except Exception as e:
        logger.exception("[server] stream failed")
        yield {"type": "error", "error": str(e)}


# ────────────── JSON endpoints ──────────────

def health() -> dict:
    return {"ok": True, "has_api_key": bool(get_settings().openai_api_key)}


def models() -> dict:
    return list_models()


def aws_account(region: str | None = None) -> dict:
    """Account envelope plus the rendered header badge."""
    info = aws_tools.get_account_info(region or get_settings().aws_region)
    return {**info, "html": account.render(info)}


def jira(body: dict) -> dict:
    """Direct Jira search / issue lookup; raises ConfigError without credentials."""
    settings = get_settings()
    if not settings.has_jira_credentials:
        raise ConfigError("Jira credentials not configured (JIRA_BASE_URL, JIRA_EMAIL, JIRA_API_TOKEN)")
    return jira_client.execute_jira_action(
        body.get("action", ""),
        query=body.get("query"),
        issue_key=body.get("issueKey"),
    )


def cards(body: dict) -> dict:
    """Re-render a card for client-side search and pagination."""
    tool = body.get("tool")
    if not tool:
        raise ValueError("tool required")
    try:
        page = int(body.get("page") or 1)
    except (TypeError, ValueError):
        page = 1
    result = render_tool_result(tool, body.get("data") or {}, body.get("search") or "", page)
    return {"html": result["html"]}
