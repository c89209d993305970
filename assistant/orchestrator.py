"""
Orchestrator: one chat agent with the AWS, GitHub and Atlassian tools.

LangGraph StateGraph:
  agent -> tools -> agent -> ... -> END

The agent node prepends the system prompt for the selected model and binds
the tools (models without tool support answer directly). After
MAX_TOOL_STEPS tool rounds the graph ends even if the model asks for more.
"""

import logging
from typing import Annotated, TypedDict

from langchain_core.messages import AIMessage, SystemMessage
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages
from langgraph.prebuilt import ToolNode

from assistant.models import get_chat_model, resolve_model, strip_reasoning
from assistant.prompts import RequestHints, system_prompt

logger = logging.getLogger(__name__)

MAX_TOOL_STEPS = 5


# ────────────── State ──────────────

class AssistantState(TypedDict):
    messages: Annotated[list, add_messages]
    model_id: str
    hints: dict
    tool_steps: int


# ────────────── Routing ──────────────

def route_after_agent(state: AssistantState) -> str:
    messages = state.get("messages", [])
    last = messages[-1] if messages else None
    if not isinstance(last, AIMessage) or not last.tool_calls:
        return "end"
    if state.get("tool_steps", 0) >= MAX_TOOL_STEPS:
        logger.warning("[orchestrator] tool step limit (%d) reached, stopping", MAX_TOOL_STEPS)
        return "end"
    return "tools"


async def count_step(state: AssistantState) -> dict:
    """Increment the tool round counter after the tools node ran."""
    return {"tool_steps": state.get("tool_steps", 0) + 1}


# ────────────── Build Graph ──────────────

def create_orchestrator(tools: list, model_getter=get_chat_model):
    """Create the agent <-> tools graph for the given tool list."""

    async def agent_node(state: AssistantState) -> dict:
        entry = resolve_model(state.get("model_id"))
        hints = RequestHints.from_dict(state.get("hints"))
        model = model_getter(entry.id)
        if entry.supports_tools and tools:
            model = model.bind_tools(tools)

        llm_messages = [SystemMessage(content=system_prompt(entry.id, hints))]
        llm_messages.extend(state.get("messages", []))

        result = await model.ainvoke(llm_messages)
        if not entry.supports_tools and isinstance(result.content, str):
            result = AIMessage(content=strip_reasoning(result.content), id=result.id)
        return {"messages": [result]}

    builder = StateGraph(AssistantState)

    builder.add_node("agent", agent_node)
    builder.add_node("tools", ToolNode(tools, handle_tool_errors=True))
    builder.add_node("count_step", count_step)

    builder.set_entry_point("agent")

    builder.add_conditional_edges("agent", route_after_agent, {
        "tools": "tools",
        "end": END,
    })

    builder.add_edge("tools", "count_step")
    builder.add_edge("count_step", "agent")

    return builder.compile()
