import json, logging
from pathlib import Path
from typing import Iterator, Optional

import requests

from genui.models import SelectedModel

log = logging.getLogger("models")

# Families that reliably produce full HTML documents; others are offered only on request.
PREFERRED_FAMILIES = ["qwen2.5-coder", "qwen3-coder", "deepseek-coder", "codellama", "llama3", "gemma"]


class ModelStreamError(RuntimeError):
    """The chat endpoint reported an error in the middle of a stream."""


class ModelService:
    def __init__(self, ollama_url: str, state_file: Path, preferred_family: str = "",
                 temperature: float = 0.7, num_predict: int = 8192, timeout: int = 240):
        self.base_url         = ollama_url.rstrip("/")
        self.state_file       = Path(state_file)
        self.preferred_family = preferred_family.lower()
        self.temperature      = temperature
        self.num_predict      = num_predict
        self.timeout          = timeout
        self._selected: Optional[SelectedModel] = None

    # ── Model discovery ───────────────────────────────────────────────────────

    def list_models(self) -> list:
        try:
            r = requests.get(f"{self.base_url}/api/tags", timeout=5)
            r.raise_for_status()
            entries = r.json().get("models", [])
        except (requests.RequestException, ValueError) as e:
            log.warning(f"   Ollama check failed: {e}")
            return []

        models = []
        for m in entries:
            name = m.get("name") if isinstance(m, dict) else None
            if not name:
                continue
            details = m.get("details") or {}
            models.append(SelectedModel(
                id=name,
                name=name,
                family=details.get("family", "") or name.split(":")[0],
                parameter_size=details.get("parameter_size", ""),
            ))
        return models

    def current_model(self) -> Optional[SelectedModel]:
        return self._selected

    def get_selected_model(self) -> Optional[SelectedModel]:
        """Cached selection if still installed, else the persisted one, else auto-select."""
        models = self.list_models()
        by_id = {m.id: m for m in models}

        if self._selected and self._selected.id in by_id:
            return self._selected

        cached_id = self._read_cached_id()
        if cached_id and cached_id in by_id:
            self._selected = by_id[cached_id]
            return self._selected

        return self.select_model(models=models)

    def select_model(self, name: str = "", show_all: bool = False, models=None) -> Optional[SelectedModel]:
        models = self.list_models() if models is None else models
        if not models:
            log.warning("   No chat models are available from Ollama")
            return None

        if name:
            picked = next((m for m in models if m.id == name or m.name == name), None)
            if picked is None:
                log.warning(f"   Model not installed: {name}")
                return None
        else:
            picked = self.rank_models(models, show_all)[0]

        self._selected = picked
        self._write_cached_id(picked.id)
        log.info(f"   ✅ Model selected: {picked.name} ({picked.family})")
        return picked

    def rank_models(self, models: list, show_all: bool = False) -> list:
        """Preferred families first (configured family before all others)."""
        preferred = [m for m in models if self._is_preferred(m)]
        pool = models if show_all or not preferred else preferred
        return sorted(pool, key=lambda m: not (
            self.preferred_family and self.preferred_family in self._model_text(m)))

    def _is_preferred(self, model: SelectedModel) -> bool:
        text = self._model_text(model)
        families = PREFERRED_FAMILIES + ([self.preferred_family] if self.preferred_family else [])
        return any(f in text for f in families)

    @staticmethod
    def _model_text(model: SelectedModel) -> str:
        return f"{model.id} {model.family} {model.name}".lower()

    def _read_cached_id(self) -> str:
        if not self.state_file.exists():
            return ""
        try:
            return json.loads(self.state_file.read_text(encoding="utf-8")).get("model_id", "")
        except (OSError, ValueError, AttributeError) as e:
            log.warning(f"   Ignoring unreadable model cache {self.state_file}: {e}")
            return ""

    def _write_cached_id(self, model_id: str):
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.state_file.write_text(json.dumps({"model_id": model_id}), encoding="utf-8")
        except OSError as e:
            log.warning(f"   Could not persist model selection: {e}")

    # ── Chat streaming ────────────────────────────────────────────────────────

    def stream_chat(self, model: SelectedModel, system_prompt: str, turns: list) -> Iterator[str]:
        """Yield text chunks of one chat completion. Not restartable."""
        messages = [{"role": "system", "content": system_prompt}]
        messages += [t.to_message() for t in turns]

        resp = requests.post(f"{self.base_url}/api/chat", json={
            "model":    model.id,
            "messages": messages,
            "stream":   True,
            "options":  {"temperature": self.temperature, "num_predict": self.num_predict},
        }, stream=True, timeout=self.timeout)

        with resp:
            resp.raise_for_status()
            for line in resp.iter_lines():
                if not line:
                    continue
                try:
                    chunk = json.loads(line)
                except ValueError:
                    log.debug(f"   skipping undecodable stream line: {line[:80]!r}")
                    continue
                if chunk.get("error"):
                    raise ModelStreamError(chunk["error"])
                tok = chunk.get("message", {}).get("content", "")
                if tok:
                    yield tok
                if chunk.get("done"):
                    break
