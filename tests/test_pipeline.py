# tests/test_pipeline.py
import json
import logging

import pytest

from genui.controller import GenUiController
from genui.design_store import DesignStore
from genui.models import GenerationRequest, SelectedModel
from pipeline import LogSurface, read_idea, run_pipeline

DOC = "<!DOCTYPE html><html><body><main>Landing</main></body></html>"


class FakeModels:
    def __init__(self, model=SelectedModel("qwen2.5-coder:7b", "qwen2.5-coder:7b")):
        self.model = model

    def current_model(self):
        return self.model

    def get_selected_model(self):
        return self.model

    def stream_chat(self, model, system_prompt, turns):
        yield DOC


class ScriptedChecker:
    def __init__(self, *results):
        self.results = list(results)
        self.seen = []

    def check(self, html):
        self.seen.append(html)
        return self.results.pop(0) if self.results else []


@pytest.fixture
def controller(tmp_path):
    return GenUiController(FakeModels(), DesignStore(tmp_path / "designs.json"), output_dir=tmp_path / "out")


def test_read_txt_idea(tmp_path):
    idea = tmp_path / "idea.txt"
    idea.write_text("A pricing table\nwith three tiers\n")
    assert read_idea(idea) == GenerationRequest("A pricing table\nwith three tiers")


def test_read_txt_idea_with_aesthetic_line(tmp_path):
    idea = tmp_path / "idea.txt"
    idea.write_text("aesthetic: Neon/Cyberpunk\nA login screen")
    assert read_idea(idea) == GenerationRequest("A login screen", "Neon/Cyberpunk")


def test_read_json_idea(tmp_path):
    idea = tmp_path / "idea.json"
    idea.write_text(json.dumps({"description": "A clock", "constraints": "no JS"}))
    assert read_idea(idea) == GenerationRequest("A clock", constraints="no JS")


def test_empty_idea_is_skipped(tmp_path, controller):
    idea = tmp_path / "empty.txt"
    idea.write_text("   \n")
    assert read_idea(idea) is None
    assert run_pipeline(idea, controller) is None


def test_pipeline_writes_output(tmp_path, controller):
    idea = tmp_path / "Landing Page.txt"
    idea.write_text("A landing page")
    target = run_pipeline(idea, controller)
    assert target == tmp_path / "out" / "landing_page.html"
    assert target.read_text(encoding="utf-8") == DOC


def test_pipeline_corrects_until_render_is_clean(tmp_path, controller):
    idea = tmp_path / "idea.txt"
    idea.write_text("A landing page")
    checker = ScriptedChecker(["Console error: ReferenceError: go is not defined"], [])

    run_pipeline(idea, controller, checker, max_fix=2)

    assert len(checker.seen) == 2
    last_prompt = controller.state.conversation_history[-2].content
    assert "ReferenceError: go is not defined" in last_prompt
    assert len(controller.state.conversation_history) == 4


def test_pipeline_stops_after_max_fix(tmp_path, controller):
    idea = tmp_path / "idea.txt"
    idea.write_text("A landing page")
    checker = ScriptedChecker(["a"], ["b"], ["c"])
    run_pipeline(idea, controller, checker, max_fix=2)
    assert len(checker.seen) == 2


def test_failed_generation_returns_none(tmp_path):
    controller = GenUiController(FakeModels(model=None), DesignStore(tmp_path / "d.json"),
                                 output_dir=tmp_path / "out")
    idea = tmp_path / "idea.txt"
    idea.write_text("A landing page")
    assert run_pipeline(idea, controller) is None
    assert not (tmp_path / "out").exists()


def test_log_surface_records_stream_errors(caplog):
    surface = LogSurface()
    with caplog.at_level(logging.INFO, logger="pipeline"):
        surface.post({"type": "stream_error", "payload": "model crashed"})
        surface.post({"type": "notify", "level": "warning", "text": "careful"})
    assert surface.last_error == "model crashed"
    assert "careful" in caplog.text
