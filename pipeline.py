#!/usr/bin/env python3
import sys, json, time, logging
from pathlib import Path
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

sys.path.insert(0, str(Path(__file__).parent))
from genui import config
from genui.controller import GenUiController, build_controller
from genui.models import GenerationRequest
from genui.render_check import RenderChecker

log = logging.getLogger("pipeline")


class LogSurface:
    """Headless surface: reports the events a person would otherwise see."""

    def __init__(self):
        self.last_error = None

    def post(self, msg: dict):
        kind = msg.get("type")
        if kind == "notify":
            level = logging.WARNING if msg.get("level") in ("warning", "error") else logging.INFO
            log.log(level, f"   {msg.get('text')}")
        elif kind == "stream_error":
            self.last_error = msg.get("payload")
            log.error(f"   ❌ {self.last_error}")
        elif kind == "model_selected":
            log.info(f"   🧠 Model: {msg['payload']['name']}")


def read_idea(path: Path):
    """A .json GenerationRequest, or a .txt description with an optional 'aesthetic:' first line."""
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return None
    if path.suffix == ".json":
        return GenerationRequest.from_dict(json.loads(text))
    first, _, rest = text.partition("\n")
    if first.lower().startswith("aesthetic:") and rest.strip():
        return GenerationRequest(description=rest.strip(), aesthetic=first.split(":", 1)[1].strip())
    return GenerationRequest(description=text)


def run_pipeline(idea_file: Path, controller: GenUiController, checker=None, max_fix: int = config.MAX_FIX):
    log.info("=" * 60)
    log.info("🚀 PIPELINE STARTED")
    log.info("=" * 60)
    try:
        request = read_idea(idea_file)
    except ValueError as e:
        log.warning(f"Unreadable idea file {idea_file.name}: {e}")
        return None
    if request is None:
        log.warning("Idea file is empty. Skipping.")
        return None
    log.info(f"💡 Idea: {request.description[:200]}")

    controller.reset()
    controller.generate(request)
    if not controller.state.generated_code:
        log.error("Generation failed.")
        return None

    target = Path(controller.output_dir) / f"{idea_file.stem.replace(' ', '_').lower()}.html"
    controller.save_to_file(target)

    if checker is not None:
        for attempt in range(1, max_fix + 1):
            issues = checker.check(controller.state.generated_code.combined_html)
            if not issues:
                log.info("✅ Render check passed!")
                break
            log.warning(f"⚠️  Attempt {attempt}/{max_fix} — {len(issues)} issue(s):")
            for i in issues: log.warning(f"   • {i}")
            controller.apply_correction(
                "Fix these problems found when rendering the page:\n" + "\n".join(issues))
            controller.save_to_file(target)

    log.info("=" * 60)
    log.info(f"🎉 DONE!  {target}")
    log.info("=" * 60)
    return target


class IdeaFileHandler(FileSystemEventHandler):
    def __init__(self, controller, checker=None):
        self.controller = controller
        self.checker    = checker
        self.processing = set()

    def on_created(self, event):  self._handle(event.src_path)
    def on_modified(self, event): self._handle(event.src_path)

    def _handle(self, path):
        p = Path(path)
        if p.suffix in (".txt", ".json") and p not in self.processing:
            time.sleep(0.5)
            self.processing.add(p)
            try: run_pipeline(p, self.controller, self.checker)
            finally: self.processing.discard(p)


if __name__ == "__main__":
    for d in [config.IDEAS_DIR, config.OUTPUT_DIR, config.LOGS_DIR]:
        d.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(config.LOGS_DIR / "pipeline.log"),
            logging.StreamHandler(sys.stdout)
        ]
    )

    controller = build_controller()
    controller.attach(LogSurface())

    log.info("🤖 Gen UI Pipeline — headless mode")
    log.info(f"   👁️  Watching : {config.IDEAS_DIR}")
    log.info(f"   📦 Output   : {config.OUTPUT_DIR}")
    log.info(f"   🧠 Ollama   : {config.OLLAMA_URL}")
    log.info("\nDrop a .txt or .json idea into ideas/ to start!")

    handler = IdeaFileHandler(controller, RenderChecker())
    observer = Observer()
    observer.schedule(handler, str(config.IDEAS_DIR), recursive=False)
    observer.start()
    try:
        while True: time.sleep(1)
    except KeyboardInterrupt:
        log.info("\n⛔ Stopping...")
        observer.stop()
    observer.join()
