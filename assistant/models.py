"""
Chat model catalog and cached ChatOpenAI instances.
"""

import re
from dataclasses import asdict, dataclass

from langchain_openai import ChatOpenAI

from assistant.prompts import REASONING_MODEL_ID

DEFAULT_CHAT_MODEL = "chat-model"


@dataclass(frozen=True)
class ChatModel:
    id: str
    name: str
    description: str
    model: str
    supports_tools: bool = True


CHAT_MODELS = [
    ChatModel("chat-model", "GPT-4o", "Primary OpenAI model for all-purpose chat", "gpt-4o"),
    ChatModel(
        REASONING_MODEL_ID,
        "o1-mini",
        "OpenAI reasoning model with advanced capabilities",
        "o1-mini",
        supports_tools=False,
    ),
    ChatModel("gpt-4.1", "GPT-4.1", "OpenAI GPT-4.1 model", "gpt-4.1-2025-04-14"),
]

_BY_ID = {m.id: m for m in CHAT_MODELS}
_model_cache: dict[str, ChatOpenAI] = {}

_RE_THINK = re.compile(r"<think>.*?</think>\s*", re.DOTALL)


def resolve_model(model_id: str | None) -> ChatModel:
    """Catalog entry for model_id; unknown ids fall back to the default."""
    return _BY_ID.get(model_id or DEFAULT_CHAT_MODEL, _BY_ID[DEFAULT_CHAT_MODEL])


def get_chat_model(model_id: str | None = None) -> ChatOpenAI:
    """Get the ChatOpenAI client for a catalog id (cached per id)."""
    entry = resolve_model(model_id)
    if entry.id not in _model_cache:
        if entry.supports_tools:
            _model_cache[entry.id] = ChatOpenAI(model=entry.model, temperature=0, streaming=True)
        else:
            # reasoning models reject temperature
            _model_cache[entry.id] = ChatOpenAI(model=entry.model)
    return _model_cache[entry.id]


def strip_reasoning(text: str) -> str:
    """Remove <think>...</think> sections from a reasoning model reply."""
    return _RE_THINK.sub("", text).strip()


def list_models() -> dict:
    return {"models": [asdict(m) for m in CHAT_MODELS], "default": DEFAULT_CHAT_MODEL}
