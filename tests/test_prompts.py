# tests/test_prompts.py
import pytest

from genui.models import ConversationTurn, GenerationRequest
from genui.prompts import (
    CORRECTION_PROMPT_PREFIX, SYSTEM_PROMPT, append_turn, build_correction_prompt, build_generation_prompt,
)


def test_generation_prompt_skips_missing_optionals():
    prompt = build_generation_prompt(GenerationRequest("A todo app", "Soft/Pastel"))
    assert prompt.splitlines() == [
        "Generate a complete standalone HTML document.",
        "Main description: A todo app",
        "Aesthetic direction: Soft/Pastel",
        "Return only raw HTML.",
    ]


def test_generation_prompt_includes_optionals():
    request = GenerationRequest("A todo app", "Brutalist/Raw", constraints="no external JS",
                                accessibility_requirements="WCAG AA")
    prompt = build_generation_prompt(request)
    assert "Technical constraints: no external JS" in prompt
    assert "Accessibility requirements: WCAG AA" in prompt


def test_correction_prompt_carries_current_html():
    prompt = build_correction_prompt("make it blue", "<!DOCTYPE html><p>x</p>")
    assert prompt.startswith(CORRECTION_PROMPT_PREFIX)
    assert "Requested changes: make it blue" in prompt
    assert prompt.endswith("Current HTML to modify:\n\n<!DOCTYPE html><p>x</p>")


def test_append_turn_returns_new_list():
    history = [ConversationTurn("user", "hi")]
    updated = append_turn(history, "assistant", "hello")
    assert history == [ConversationTurn("user", "hi")]
    assert updated == [ConversationTurn("user", "hi"), ConversationTurn("assistant", "hello")]


def test_unknown_role_rejected():
    with pytest.raises(ValueError):
        append_turn([], "system", "nope")


def test_system_prompt_asks_for_a_single_document():
    assert "<!DOCTYPE html>" in SYSTEM_PROMPT
    assert "Do not wrap output in markdown" in SYSTEM_PROMPT


def test_request_from_dict_requires_description():
    with pytest.raises(ValueError):
        GenerationRequest.from_dict({"aesthetic": "Glassmorphism"})
    req = GenerationRequest.from_dict({"description": "  A clock ", "constraints": ""})
    assert req == GenerationRequest("A clock", "", None, None)
