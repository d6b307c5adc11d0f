from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional

ROLES = ("user", "assistant")


@dataclass(frozen=True)
class ParsedCode:
    html: str
    css: str
    js: str
    raw: str
    combined_html: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ParsedCode":
        return cls(
            html=data.get("html", ""),
            css=data.get("css", ""),
            js=data.get("js", ""),
            raw=data.get("raw", ""),
            combined_html=data.get("combined_html", ""),
        )


@dataclass(frozen=True)
class GenerationRequest:
    description: str
    aesthetic: str = ""
    constraints: Optional[str] = None
    accessibility_requirements: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GenerationRequest":
        description = str(data.get("description") or "").strip()
        if not description:
            raise ValueError("A description is required.")
        return cls(
            description=description,
            aesthetic=str(data.get("aesthetic") or "").strip(),
            constraints=(data.get("constraints") or None),
            accessibility_requirements=(data.get("accessibility_requirements") or None),
        )


@dataclass(frozen=True)
class ConversationTurn:
    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown role: {self.role!r}")

    def to_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class SelectedModel:
    id: str
    name: str
    family: str = ""
    parameter_size: str = ""

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass
class StoredDesign:
    id: str
    title: str
    created_at: str
    request: Optional[GenerationRequest]
    generated_code: ParsedCode

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "created_at": self.created_at,
            "request": self.request.to_dict() if self.request else None,
            "generated_code": self.generated_code.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoredDesign":
        req = data.get("request")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            created_at=data.get("created_at", ""),
            request=GenerationRequest.from_dict(req) if req else None,
            generated_code=ParsedCode.from_dict(data.get("generated_code") or {}),
        )


@dataclass
class SessionState:
    """The controller's single source of truth; surfaces only ever see snapshots."""
    generated_code: Optional[ParsedCode] = None
    conversation_history: list[ConversationTurn] = field(default_factory=list)
    selected_model: Optional[SelectedModel] = None
    original_request: Optional[GenerationRequest] = None
    is_generating: bool = False
    session_id: int = 0

    def snapshot(self) -> dict[str, Any]:
        return {
            "generated_code": self.generated_code.to_dict() if self.generated_code else None,
            "conversation_history": [t.to_message() for t in self.conversation_history],
            "selected_model": self.selected_model.to_dict() if self.selected_model else None,
            "original_request": self.original_request.to_dict() if self.original_request else None,
            "is_generating": self.is_generating,
        }
