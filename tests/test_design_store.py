# tests/test_design_store.py
import json

import pytest

from genui.design_store import DEFAULT_TITLE, DesignStore
from genui.models import GenerationRequest, ParsedCode


def _code(n):
    html = f"<!DOCTYPE html><p>{n}</p>"
    return ParsedCode(html=html, css="", js="", raw=html, combined_html=html)


@pytest.fixture
def store(tmp_path):
    return DesignStore(tmp_path / "data" / "designs.json", max_designs=50)


def test_empty_store(store):
    assert store.all() == []
    assert store.latest() is None
    assert store.get("nope") is None


def test_only_fifty_newest_kept(store):
    for n in range(60):
        store.add(_code(n), GenerationRequest(f"design {n}"))
    designs = store.all()
    assert len(designs) == 50
    assert [d.title for d in designs] == [f"design {n}" for n in range(59, 9, -1)]
    assert store.latest().generated_code == _code(59)


def test_title_truncated_to_80_chars(store):
    design = store.add(_code(1), GenerationRequest("x" * 120))
    assert design.title == "x" * 80


def test_default_title_without_request(store):
    assert store.add(_code(1)).title == DEFAULT_TITLE


def test_round_trip_through_disk(store):
    request = GenerationRequest("Weather card", "Glassmorphism", constraints="no images")
    saved = store.add(_code(7), request)
    loaded = DesignStore(store.path).get(saved.id)
    assert loaded.request == request
    assert loaded.generated_code == _code(7)
    assert loaded.created_at == saved.created_at


def test_ids_are_unique(store):
    ids = {store.add(_code(n)).id for n in range(5)}
    assert len(ids) == 5


def test_corrupt_file_reads_as_empty(store):
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json")
    assert store.all() == []
    store.add(_code(1))
    assert len(json.loads(store.path.read_text())) == 1
