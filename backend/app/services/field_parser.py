"""
Field parser - turns raw form text (one string per resume section) into canonical section items.
Also normalizes already-structured items, so a section may arrive as text, strings, or dicts.
Nothing here raises: malformed input degrades to a free-text point instead of being rejected.
"""
from typing import Any

from backend.app.core.logging_config import get_logger

logger = get_logger("services.field_parser")


def _lines(text: str | None) -> list[str]:
    """Non-empty trimmed lines of a multi-line field."""
    if not text:
        return []
    return [line.strip() for line in str(text).splitlines() if line.strip()]


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


# --- Flat sections ---


def parse_skills(text: str | None) -> list[str]:
    """Comma-separated skills -> list of strings."""
    if not text:
        return []
    return [s.strip() for s in str(text).split(",") if s.strip()]


def parse_certifications(text: str | None) -> list[str]:
    """One certification per line."""
    return _lines(text)


# --- Structured sections ---


def parse_education_line(line: str) -> dict | None:
    """'B.Tech, MIT, 2025' -> degree/institution/year. None when there is no degree."""
    parts = [p.strip() for p in line.split(",") if p.strip()]
    if not parts:
        return None
    return {
        "degree": parts[0],
        "institution": parts[1] if len(parts) > 1 else "",
        "year": ", ".join(parts[2:]),
    }


def parse_education(text: str | None) -> list[dict]:
    items = []
    for line in _lines(text):
        item = parse_education_line(line)
        if item:
            items.append(item)
    return items


def _experience(role: str = "", company: str = "", duration: str = "", points: list[str] | None = None) -> dict:
    return {
        "role": role,
        "company": company,
        "duration": duration,
        "location": "",
        "points": points or [],
    }


def parse_experience_line(line: str) -> dict:
    """
    Parse one experience line. First matching pattern wins:
        'Engineer at Acme - 2020-2022'  -> role, company, duration
        'Engineer - 2020-2022'          -> role, duration
        'Engineer, Acme, 2020-2022'     -> role, company, duration
        anything else                   -> the whole line as a single point
    """
    line = line.strip()
    if " at " in line:
        role, rest = line.split(" at ", 1)
        company, _, duration = rest.partition(" - ")
        return _experience(role.strip(), company.strip(), duration.strip())
    if " - " in line:
        role, _, duration = line.partition(" - ")
        return _experience(role.strip(), duration=duration.strip())
    if "," in line:
        parts = [p.strip() for p in line.split(",")]
        return _experience(parts[0], parts[1], ", ".join(parts[2:]))
    return _experience(points=[line])


def parse_experience(text: str | None) -> list[dict]:
    return [parse_experience_line(line) for line in _lines(text)]


def parse_project_line(line: str) -> dict | None:
    """'Title - Tech - Duration' -> project dict. None when there is no title."""
    parts = [p.strip() for p in line.split(" - ")]
    if not parts[0]:
        return None
    return {
        "title": parts[0],
        "duration": parts[2] if len(parts) > 2 else "",
        "subtitle": "",
        "tech": parts[1] if len(parts) > 1 else "",
        "points": [],
    }


def parse_projects(text: str | None) -> list[dict]:
    items = []
    for line in _lines(text):
        item = parse_project_line(line)
        if item:
            items.append(item)
    return items


# --- Normalization of already-structured items ---


def normalize_points(value: Any) -> list[str]:
    """Points may be strings or {"text": ...} objects; empty ones are dropped."""
    if value is None:
        return []
    if isinstance(value, str):
        return _lines(value)
    if isinstance(value, dict):
        value = [value]
    points = []
    for p in value:
        if isinstance(p, dict):
            text = _text(p.get("text", ""))
        else:
            text = _text(p)
        if text:
            points.append(text)
    return points


def normalize_string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    out = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("text") or item.get("name") or ""
        text = _text(item)
        if text:
            out.append(text)
    return out


def normalize_experience(item: Any) -> dict:
    """A bare string is a single free-text point; a dict is read by field name."""
    if isinstance(item, dict):
        return {
            "role": _text(item.get("role") or item.get("title")),
            "company": _text(item.get("company")),
            "duration": _text(item.get("duration")),
            "location": _text(item.get("location")),
            "points": normalize_points(item.get("points")),
        }
    return _experience(points=normalize_points(_text(item)))


def normalize_project(item: Any) -> dict | None:
    """
    A bare string is 'title | duration | subtitle | tech | point; point', where only
    the title is required. A dict is read by field name. None when there is no title.
    """
    if isinstance(item, dict):
        title = _text(item.get("title") or item.get("name"))
        if not title:
            return None
        return {
            "title": title,
            "duration": _text(item.get("duration")),
            "subtitle": _text(item.get("subtitle")),
            "tech": _text(item.get("tech") or item.get("techStack")),
            "points": normalize_points(item.get("points")),
        }
    parts = [p.strip() for p in _text(item).split("|")]
    if not parts[0]:
        return None
    parts += [""] * (5 - len(parts))
    return {
        "title": parts[0],
        "duration": parts[1],
        "subtitle": parts[2],
        "tech": parts[3],
        "points": [p.strip() for p in parts[4].split(";") if p.strip()],
    }


def normalize_education(item: Any) -> dict | None:
    if isinstance(item, dict):
        degree = _text(item.get("degree") or item.get("text"))
        if not degree:
            return None
        return {
            "degree": degree,
            "institution": _text(item.get("institution") or item.get("college")),
            "year": _text(item.get("year")),
        }
    degree = _text(item)
    if not degree:
        return None
    return {"degree": degree, "institution": "", "year": ""}


_TEXT_PARSERS = {
    "technical_skills": parse_skills,
    "certifications": parse_certifications,
    "education": parse_education,
    "experience": parse_experience,
    "projects": parse_projects,
}

_ITEM_NORMALIZERS = {
    "education": normalize_education,
    "experience": normalize_experience,
    "projects": normalize_project,
}


def coerce_section(kind: str, value: Any) -> list:
    """
    Bring any accepted shape of a section into its canonical list form.
    Raw text goes through the matching parse_* function; lists are normalized item by item.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return _TEXT_PARSERS[kind](value)
    if isinstance(value, dict):
        value = [value]
    normalizer = _ITEM_NORMALIZERS.get(kind)
    if normalizer is None:
        return normalize_string_list(value)
    items = []
    for raw in value:
        item = normalizer(raw)
        if item is None:
            logger.debug("Dropped %s item without a title: %r", kind, raw)
            continue
        items.append(item)
    return items
