"""
Per-section enhancement preview state for a resume form.

Each section runs its own small state machine:
    idle -> enhancing -> previewed -> applied | discarded
    enhancing -> idle            (request failed)
    applied | discarded -> enhancing   (user asks again)
Applying turns the preview back into form text the field parser can read again.
The enhance-section endpoint drives one machine per request (see preview_enhancement) so the
client receives both the display lines and the ready-to-apply form text.
"""
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from backend.app.core.config import ENHANCE_SECTIONS


class PreviewState(str, Enum):
    IDLE = "idle"
    ENHANCING = "enhancing"
    PREVIEWED = "previewed"
    APPLIED = "applied"
    DISCARDED = "discarded"


_TRANSITIONS: dict[PreviewState, set[PreviewState]] = {
    PreviewState.IDLE: {PreviewState.ENHANCING},
    PreviewState.ENHANCING: {PreviewState.PREVIEWED, PreviewState.IDLE},
    PreviewState.PREVIEWED: {PreviewState.APPLIED, PreviewState.DISCARDED, PreviewState.ENHANCING},
    PreviewState.APPLIED: {PreviewState.ENHANCING},
    PreviewState.DISCARDED: {PreviewState.ENHANCING},
}


class InvalidTransition(Exception):
    pass


def _readable_item(item: dict, section: str) -> str:
    if section == "experience":
        role = item.get("role") or item.get("title") or ""
        company = f" at {item['company']}" if item.get("company") else ""
        duration = f" - {item['duration']}" if item.get("duration") else ""
        return f"{role}{company}{duration}" if (role or company or duration) else json.dumps(item)
    if section == "projects":
        title = item.get("title") or item.get("name") or ""
        tech = item.get("tech") or item.get("stack") or ""
        return f"{title} - {tech}" if tech else (title or json.dumps(item))
    if section == "education":
        degree = item.get("degree") or item.get("text") or ""
        college = item.get("college") or item.get("institution") or ""
        year = item.get("year") or ""
        return ", ".join(p for p in (degree, college, year) if p)
    return item.get("text") or item.get("name") or json.dumps(item)


def to_readable_lines(value: Any, section: str) -> list[str]:
    """Any enhanced shape (text, list of strings, list of records) -> display lines."""
    if not value:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    if isinstance(value, dict):
        value = [value]
    if isinstance(value, list):
        lines = []
        for item in value:
            text = _readable_item(item, section) if isinstance(item, dict) else str(item)
            if text.strip():
                lines.append(text.strip())
        return lines
    return [str(value)]


def lines_to_form_text(section: str, lines: list[str]) -> str:
    """Summary joins lines, skills become a comma list, every other section is one entry per line."""
    if section == "skills":
        return ", ".join(lines)
    return "\n".join(lines)


@dataclass
class SectionPreview:
    section: str
    state: PreviewState = PreviewState.IDLE
    lines: list[str] = field(default_factory=list)
    error: str | None = None

    def _move(self, target: PreviewState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(f"{self.section}: {self.state.value} -> {target.value}")
        self.state = target

    def start(self) -> None:
        self._move(PreviewState.ENHANCING)
        self.error = None

    def receive(self, value: Any) -> list[str]:
        self._move(PreviewState.PREVIEWED)
        self.lines = to_readable_lines(value, self.section)
        return self.lines

    def fail(self, error: str) -> None:
        self._move(PreviewState.IDLE)
        self.error = error

    def apply(self) -> str:
        """Accept the preview; returns the text to put back into the form field."""
        self._move(PreviewState.APPLIED)
        return lines_to_form_text(self.section, self.lines)

    def discard(self) -> None:
        self._move(PreviewState.DISCARDED)
        self.lines = []


@dataclass
class EnhancementPreviews:
    """Independent preview state machines keyed by section name."""

    sections: dict[str, SectionPreview] = field(
        default_factory=lambda: {s: SectionPreview(section=s) for s in ENHANCE_SECTIONS}
    )

    def __getitem__(self, section: str) -> SectionPreview:
        return self.sections[section]

    def apply_to_form(self, section: str, form: dict[str, str]) -> dict[str, str]:
        """Return a copy of the form with the section replaced by its applied preview."""
        return {**form, section: self.sections[section].apply()}


def preview_enhancement(section: str, value: Any) -> tuple[list[str], str]:
    """Run an enhanced value through start -> receive -> apply. Returns (display lines, form text)."""
    preview = SectionPreview(section=section)
    preview.start()
    lines = preview.receive(value)
    return lines, preview.apply()
