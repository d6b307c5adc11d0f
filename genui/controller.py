"""
Session controller: owns the one SessionState, talks to the model service,
and fans every state change out to whatever display surfaces are attached.

A surface is any object with a post(message: dict) method. Surfaces never
touch the state directly; they send inbound messages to handle_message().
"""
import logging, re, threading, time
from datetime import datetime
from pathlib import Path
from typing import Optional

from genui.models import GenerationRequest, SessionState
from genui.prompts import SYSTEM_PROMPT, append_turn, build_correction_prompt, build_generation_prompt
from genui.response_parser import encode_for_preview, parse_generated_code, parse_streaming_partial

log = logging.getLogger("controller")

# Message types that stream from the model; callers should run these off the event loop.
BLOCKING_MESSAGES = frozenset({"generate", "apply_correction"})


class GenUiController:
    def __init__(self, model_service, store, presets=None, output_dir: Path = Path("production-ready")):
        self.model_service = model_service
        self.store         = store
        self.presets       = list(presets or [])
        self.output_dir    = Path(output_dir)
        self.state         = SessionState()
        self.surfaces      = []
        self._lock         = threading.Lock()

    # ── Surfaces ──────────────────────────────────────────────────────────────

    def attach(self, surface):
        self.surfaces.append(surface)

    def detach(self, surface):
        if surface in self.surfaces:
            self.surfaces.remove(surface)

    def broadcast(self, msg: dict):
        for surface in list(self.surfaces):
            try:
                surface.post(msg)
            except Exception as e:
                log.warning(f"   Surface {surface!r} dropped {msg.get('type')}: {e}")

    def notify(self, level: str, text: str):
        log.info(f"   [{level}] {text}")
        self.broadcast({"type": "notify", "level": level, "text": text})

    def push_preview(self, html: str, is_streaming: bool):
        self.broadcast({"type": "preview_update", "payload": {
            "base64_html": encode_for_preview(html), "is_streaming": is_streaming}})

    # ── Inbound messages ──────────────────────────────────────────────────────

    def handle_message(self, msg: dict):
        kind = msg.get("type")
        if kind == "ready":
            self.ready()
        elif kind == "select_model":
            self.select_model(msg.get("name", ""), bool(msg.get("show_all")))
        elif kind == "list_models":
            self.list_models()
        elif kind == "generate":
            try:
                request = GenerationRequest.from_dict(msg.get("payload") or {})
            except ValueError as e:
                self.notify("warning", str(e)); return
            self.generate(request)
        elif kind == "apply_correction":
            self.apply_correction(str(msg.get("payload") or "").strip())
        elif kind == "reset":
            self.reset()
        elif kind == "save_to_file":
            self.save_to_file(msg.get("path"))
        elif kind == "load_design":
            self.load_design(msg.get("id"))
        else:
            log.debug(f"Ignoring message type {kind!r}")

    def ready(self):
        self.broadcast({"type": "aesthetic_presets", "payload": self.presets})
        model = self.state.selected_model or self.model_service.current_model()
        if model:
            self.state.selected_model = model
            self._announce_model(model)
        if self.state.generated_code:
            self.broadcast({"type": "restore_state", "payload": self.state.snapshot()})
            self.push_preview(self.state.generated_code.combined_html, False)
        else:
            self._restore_most_recent()

    def select_model(self, name: str = "", show_all: bool = False):
        model = self.model_service.select_model(name, show_all)
        if not model:
            self.notify("warning", f"Model not available: {name}" if name
                        else "No chat models are currently available.")
            return None
        self.state.selected_model = model
        self._announce_model(model)
        self.notify("info", f"Model selected: {model.name} ({model.family})")
        return model

    def list_models(self):
        models = self.model_service.list_models()
        ranked = self.model_service.rank_models(models, show_all=True) if models else []
        self.broadcast({"type": "models", "payload": [m.to_dict() for m in ranked]})

    def reset(self):
        with self._lock:
            self.state.session_id += 1
            self.state.generated_code = None
            self.state.conversation_history = []
            self.state.original_request = None
            self.state.is_generating = False
        log.info("   🔄 Session reset")
        self.broadcast({"type": "state_reset"})

    # ── Generation ────────────────────────────────────────────────────────────

    def generate(self, request: GenerationRequest):
        model = self._ensure_model()
        if not model:
            return
        sid = self._begin_session(request)
        if sid is None:
            return
        log.info(f"💡 {request.description[:90]}")
        history = append_turn(self.state.conversation_history, "user",
                              build_generation_prompt(request))
        self._run_session(sid, model, history, "Generation failed.")

    def apply_correction(self, correction: str):
        if not self.state.generated_code:
            self.notify("warning", "Generate a UI first before applying corrections.")
            return
        if not correction:
            self.notify("warning", "Describe the change you want to make.")
            return
        model = self._ensure_model()
        if not model:
            return
        sid = self._begin_session()
        if sid is None:
            return
        log.info(f"✏️  Correction: {correction[:90]}")
        prompt = build_correction_prompt(correction, self.state.generated_code.combined_html)
        history = append_turn(self.state.conversation_history, "user", prompt)
        self._run_session(sid, model, history, "Correction failed.")

    def _ensure_model(self):
        if self.state.selected_model:
            return self.state.selected_model
        model = self.model_service.get_selected_model()
        if not model:
            self.notify("warning", "Select a model to continue.")
            return None
        self.state.selected_model = model
        self._announce_model(model)
        return model

    def _begin_session(self, request: Optional[GenerationRequest] = None) -> Optional[int]:
        with self._lock:
            busy = self.state.is_generating
            if not busy:
                self.state.session_id += 1
                self.state.is_generating = True
                if request is not None:
                    self.state.original_request = request
                sid = self.state.session_id
        if busy:
            self.notify("warning", "A generation is already in progress.")
            return None
        self.broadcast({"type": "generation_started"})
        return sid

    def _is_current(self, sid: int) -> bool:
        return self.state.session_id == sid

    def _run_session(self, sid: int, model, history: list, failure: str):
        started = time.time()
        try:
            full_text = self._stream_model_response(sid, model, history)
            if not self._is_current(sid):
                log.info(f"   ⏭️  Session {sid} was superseded, result discarded")
                return
            parsed = parse_generated_code(full_text)
            with self._lock:
                if not self._is_current(sid):
                    return
                self.state.conversation_history = append_turn(history, "assistant", full_text)
                self.state.generated_code = parsed
            self.store.add(parsed, self.state.original_request)
            with self._lock:
                self.state.is_generating = False
        except Exception as e:
            log.exception("Generation error")
            with self._lock:
                if not self._is_current(sid):
                    return
                self.state.is_generating = False
            self.broadcast({"type": "stream_error", "payload": str(e) or failure})
            return

        log.info(f"   ✅ {len(parsed.combined_html)}B document in {time.time() - started:.1f}s")
        self.broadcast({"type": "stream_complete", "payload": parsed.to_dict()})
        self.push_preview(parsed.combined_html, False)

    def _stream_model_response(self, sid: int, model, history: list) -> str:
        full = ""
        for chunk in self.model_service.stream_chat(model, SYSTEM_PROMPT, history):
            if not self._is_current(sid):
                break
            if not chunk:
                continue
            full += chunk
            self.broadcast({"type": "stream_chunk", "payload": chunk})
            self.push_preview(parse_streaming_partial(full).combined_html, True)
        return full

    # ── Stored designs ────────────────────────────────────────────────────────

    def save_to_file(self, path=None) -> Optional[Path]:
        code = self.state.generated_code
        if not code or not code.combined_html:
            self.notify("warning", "No generated HTML available to save.")
            return None
        target = Path(path) if path else self.output_dir / self._default_filename()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(code.combined_html, encoding="utf-8")
        except OSError as e:
            log.error(f"   ❌ Save failed: {e}")
            self.notify("error", f"Could not save {target}: {e}")
            return None
        self.broadcast({"type": "saved", "path": str(target)})
        self.notify("info", f"Saved generated UI to {target}")
        return target

    def _default_filename(self) -> str:
        req = self.state.original_request
        slug = re.sub(r"[^a-z0-9]+", "-", req.description.lower())[:40].strip("-") if req else ""
        return f"{slug or 'generated-ui'}-{datetime.now():%Y%m%d-%H%M%S}.html"

    def load_design(self, design_id: Optional[str] = None):
        designs = self.store.all()
        if not designs:
            self.notify("info", "No saved designs found in storage yet.")
            return None

        if not design_id:
            self.broadcast({"type": "designs", "payload": [{
                "id":          d.id,
                "label":       d.title,
                "description": _local_time(d.created_at),
                "detail":      (f"Aesthetic: {d.request.aesthetic}"
                                if d.request and d.request.aesthetic else "Generated design"),
            } for d in designs]})
            return None

        design = next((d for d in designs if d.id == design_id), None)
        if design is None:
            self.notify("warning", f"Design not found: {design_id}")
            return None
        self.state.generated_code = design.generated_code
        self.state.original_request = design.request
        self.broadcast({"type": "stream_complete", "payload": design.generated_code.to_dict()})
        self.push_preview(design.generated_code.combined_html, False)
        return design

    def _restore_most_recent(self):
        latest = self.store.latest()
        if not latest:
            return
        self.state.generated_code = latest.generated_code
        self.state.original_request = latest.request
        self.push_preview(latest.generated_code.combined_html, False)

    def _announce_model(self, model):
        self.broadcast({"type": "model_selected",
                        "payload": {"name": model.name, "family": model.family}})


def _local_time(iso: str) -> str:
    try:
        return datetime.fromisoformat(iso).astimezone().strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return iso


def build_controller() -> GenUiController:
    """Controller wired to Ollama and the on-disk design store, as configured."""
    from genui import config
    from genui.design_store import DesignStore
    from genui.model_service import ModelService

    models = ModelService(config.OLLAMA_URL, config.MODEL_STATE, config.MODEL_FAMILY,
                          temperature=config.TEMPERATURE, num_predict=config.NUM_PREDICT,
                          timeout=config.REQUEST_TIMEOUT)
    store = DesignStore(config.DESIGNS_FILE, config.MAX_STORED_DESIGNS)
    return GenUiController(models, store, config.aesthetic_presets(), config.OUTPUT_DIR)
