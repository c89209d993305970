from assistant import models
from assistant.models import (
    DEFAULT_CHAT_MODEL, get_chat_model, list_models, resolve_model, strip_reasoning,
)
from assistant.prompts import (
    GITHUB_PROMPT, JIRA_PROMPT, REASONING_MODEL_ID, REGULAR_PROMPT, RequestHints,
    request_prompt_from_hints, system_prompt,
)


def test_request_prompt_from_hints():
    hints = RequestHints(latitude="52.5", longitude="13.4", city="Berlin", country="DE")
    text = request_prompt_from_hints(hints)
    assert text.startswith("About the origin of user's request:")
    assert "- city: Berlin" in text
    assert "- lon: 13.4" in text


def test_hints_from_dict_tolerates_none():
    assert RequestHints.from_dict(None) == RequestHints()
    assert RequestHints.from_dict({"city": "Oslo"}).city == "Oslo"


def test_system_prompt_for_tool_models():
    prompt = system_prompt("chat-model", RequestHints(city="Berlin"))
    assert REGULAR_PROMPT in prompt
    assert GITHUB_PROMPT in prompt
    assert JIRA_PROMPT in prompt
    assert "- city: Berlin" in prompt


def test_system_prompt_for_reasoning_model():
    prompt = system_prompt(REASONING_MODEL_ID)
    assert REGULAR_PROMPT in prompt
    assert GITHUB_PROMPT not in prompt
    assert JIRA_PROMPT not in prompt


def test_system_prompt_skips_empty_request_hints():
    prompt = system_prompt("chat-model", RequestHints.from_dict({}))
    assert "About the origin of user's request" not in prompt
    assert "None" not in prompt
    assert "About the origin of user's request" not in system_prompt("chat-model")


def test_resolve_model_falls_back_to_default():
    assert resolve_model("gpt-4.1").model == "gpt-4.1-2025-04-14"
    assert resolve_model("no-such-model").id == DEFAULT_CHAT_MODEL
    assert resolve_model(None).model == "gpt-4o"
    assert resolve_model(REASONING_MODEL_ID).supports_tools is False


def test_list_models():
    catalog = list_models()
    assert catalog["default"] == "chat-model"
    assert [m["id"] for m in catalog["models"]] == ["chat-model", "chat-model-reasoning", "gpt-4.1"]


def test_get_chat_model_is_cached(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(models, "_model_cache", {})
    first = get_chat_model("chat-model")
    assert get_chat_model("unknown") is first
    assert first.model_name == "gpt-4o"


def test_strip_reasoning():
    assert strip_reasoning("<think>step 1\nstep 2</think>\nAnswer") == "Answer"
    assert strip_reasoning("No reasoning") == "No reasoning"
