# tests/test_model_service.py
import json

import pytest
import requests

from genui import model_service as ms
from genui.model_service import ModelService, ModelStreamError
from genui.models import ConversationTurn, SelectedModel

TAGS = {"models": [
    {"name": "llama3.1:8b", "details": {"family": "llama", "parameter_size": "8B"}},
    {"name": "qwen2.5-coder:14b", "details": {"family": "qwen2", "parameter_size": "14B"}},
    {"name": "nomic-embed-text:latest", "details": {"family": "nomic-bert"}},
]}


class FakeResponse:
    def __init__(self, payload=None, lines=(), status=200):
        self.payload = payload
        self.lines = list(lines)
        self.status = status
        self.closed = False

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload

    def iter_lines(self):
        for line in self.lines:
            yield line.encode() if isinstance(line, str) else line

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True


@pytest.fixture
def service(tmp_path):
    return ModelService("http://ollama:11434/", tmp_path / "selected.json", "qwen2.5-coder")


@pytest.fixture
def tags(monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append(url)
        return FakeResponse(TAGS)

    monkeypatch.setattr(ms.requests, "get", fake_get)
    return calls


def test_list_models_parses_tags(service, tags):
    models = service.list_models()
    assert tags == ["http://ollama:11434/api/tags"]
    assert models[1] == SelectedModel("qwen2.5-coder:14b", "qwen2.5-coder:14b", "qwen2", "14B")
    assert models[2].family == "nomic-bert"


def test_list_models_unreachable_is_empty(service, monkeypatch):
    def boom(url, timeout):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(ms.requests, "get", boom)
    assert service.list_models() == []
    assert service.get_selected_model() is None


def test_auto_selection_prefers_configured_family(service, tags):
    model = service.get_selected_model()
    assert model.id == "qwen2.5-coder:14b"
    assert json.loads(service.state_file.read_text()) == {"model_id": "qwen2.5-coder:14b"}


def test_rank_hides_non_preferred_unless_show_all(service, tags):
    models = service.list_models()
    assert [m.id for m in service.rank_models(models)] == ["qwen2.5-coder:14b", "llama3.1:8b"]
    assert len(service.rank_models(models, show_all=True)) == 3


def test_cached_selection_survives_restart(service, tags, tmp_path):
    service.select_model("llama3.1:8b")
    fresh = ModelService("http://ollama:11434", service.state_file, "qwen2.5-coder")
    assert fresh.get_selected_model().id == "llama3.1:8b"


def test_select_unknown_model(service, tags):
    assert service.select_model("mistral:7b") is None
    assert service.current_model() is None


def test_stream_chat_yields_tokens_until_done(service, monkeypatch):
    lines = [
        json.dumps({"message": {"content": "<!DOCTYPE html>"}}),
        "",
        "not json",
        json.dumps({"message": {"content": "<p>hi</p>"}}),
        json.dumps({"message": {"content": ""}, "done": True}),
        json.dumps({"message": {"content": "ignored"}}),
    ]
    sent = {}

    def fake_post(url, json, stream, timeout):
        sent.update(url=url, body=json, stream=stream)
        return FakeResponse(lines=lines)

    monkeypatch.setattr(ms.requests, "post", fake_post)
    model = SelectedModel("qwen2.5-coder:14b", "qwen2.5-coder:14b")
    turns = [ConversationTurn("user", "make a page")]

    chunks = list(service.stream_chat(model, "be bold", turns))

    assert chunks == ["<!DOCTYPE html>", "<p>hi</p>"]
    assert sent["url"] == "http://ollama:11434/api/chat"
    assert sent["stream"] is True
    assert sent["body"]["model"] == "qwen2.5-coder:14b"
    assert sent["body"]["messages"] == [
        {"role": "system", "content": "be bold"},
        {"role": "user", "content": "make a page"},
    ]


def test_stream_chat_raises_on_error_chunk(service, monkeypatch):
    lines = [json.dumps({"message": {"content": "<p>"}}), json.dumps({"error": "model crashed"})]
    monkeypatch.setattr(ms.requests, "post", lambda *a, **k: FakeResponse(lines=lines))
    stream = service.stream_chat(SelectedModel("m", "m"), "sys", [])
    assert next(stream) == "<p>"
    with pytest.raises(ModelStreamError, match="model crashed"):
        next(stream)


def test_stream_chat_raises_on_http_error(service, monkeypatch):
    resp = FakeResponse(status=404)
    monkeypatch.setattr(ms.requests, "post", lambda *a, **k: resp)
    with pytest.raises(requests.HTTPError):
        list(service.stream_chat(SelectedModel("m", "m"), "sys", []))
    assert resp.closed
