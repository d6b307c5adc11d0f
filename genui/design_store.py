import json, logging, random, string, time
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from genui.models import StoredDesign

log = logging.getLogger("designs")

DEFAULT_TITLE = "Generated UI"


def _design_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{int(time.time() * 1000)}-{suffix}"


class DesignStore:
    """Past generations in a JSON file, newest first, capped at max_designs."""

    def __init__(self, path: Path, max_designs: int = 50):
        self.path        = Path(path)
        self.max_designs = max_designs

    def all(self) -> list:
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return [StoredDesign.from_dict(d) for d in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            log.warning(f"   Ignoring unreadable design store {self.path}: {e}")
            return []

    def latest(self) -> Optional[StoredDesign]:
        designs = self.all()
        return designs[0] if designs else None

    def get(self, design_id: str) -> Optional[StoredDesign]:
        return next((d for d in self.all() if d.id == design_id), None)

    def add(self, generated_code, request=None) -> StoredDesign:
        title = (request.description.strip()[:80] if request else "") or DEFAULT_TITLE
        design = StoredDesign(
            id=_design_id(),
            title=title,
            created_at=datetime.now(timezone.utc).isoformat(),
            request=request,
            generated_code=generated_code,
        )
        designs = [design, *self.all()][: self.max_designs]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps([d.to_dict() for d in designs], ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        log.info(f"   💾 Stored design {design.id} ({len(designs)}/{self.max_designs})")
        return design
