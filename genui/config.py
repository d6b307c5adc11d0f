import os
from pathlib import Path

from genui.prompts import DEFAULT_AESTHETIC_PRESETS

BASE_DIR = Path(__file__).resolve().parent.parent
UI_DIR   = BASE_DIR / "ui"

OLLAMA_URL      = os.environ.get("GENUI_OLLAMA_URL", "http://localhost:11434")
MODEL_FAMILY    = os.environ.get("GENUI_MODEL_FAMILY", "qwen2.5-coder")
DATA_DIR        = Path(os.environ.get("GENUI_DATA_DIR", Path.home() / ".genui"))
OUTPUT_DIR      = Path(os.environ.get("GENUI_OUTPUT_DIR", BASE_DIR / "production-ready"))
IDEAS_DIR       = BASE_DIR / "ideas"
LOGS_DIR        = BASE_DIR / "logs"
DESIGNS_FILE    = DATA_DIR / "designs.json"
MODEL_STATE     = DATA_DIR / "selected_model.json"

UI_PORT         = int(os.environ.get("GENUI_UI_PORT", "7824"))
WS_PORT         = int(os.environ.get("GENUI_WS_PORT", "7825"))

TEMPERATURE     = float(os.environ.get("GENUI_TEMPERATURE", "0.7"))
NUM_PREDICT     = int(os.environ.get("GENUI_NUM_PREDICT", "8192"))
REQUEST_TIMEOUT = int(os.environ.get("GENUI_REQUEST_TIMEOUT", "240"))

MAX_STORED_DESIGNS = 50
MAX_FIX            = 2


def aesthetic_presets() -> list:
    """Configured presets, or the built-in list when the override is empty."""
    raw = os.environ.get("GENUI_AESTHETIC_PRESETS", "")
    configured = [p.strip() for p in raw.split(",") if p.strip()]
    return configured or list(DEFAULT_AESTHETIC_PRESETS)
