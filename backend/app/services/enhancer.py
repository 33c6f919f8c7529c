"""
AI resume enhancement. Best-effort: every public function here returns a usable value
(the caller's original data at worst) and never raises.

Models are tried in the order of settings.enhancer_models; adding or removing a model is a config change.
"""
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeVar

from openai import OpenAI, OpenAIError

from backend.app.core.config import settings
from backend.app.core.exceptions import EnrichmentFailure
from backend.app.core.logging_config import get_logger

logger = get_logger("services.enhancer")

T = TypeVar("T")

# Greedy: first "{" to last "}" of the reply, fences and chatter around it are ignored
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

RESUME_PROMPT = """You are a professional resume writer. Rewrite this resume content professionally.

Enhance:
- Summary (max 3 lines)
- Experience (rewrite each entry's points as achievement-based bullet points)
- Skills (clean, ATS-ready)

Keep one experience record per input entry, in the same order.
Do not change role, company, duration or location.

Input JSON:
{resume_json}

Return VALID JSON ONLY in this format:
{{
  "summary": "Improved summary",
  "experience": [
    {{"role": "Role", "company": "Company", "duration": "Duration", "location": "Location", "points": ["Bullet 1", "Bullet 2"]}}
  ],
  "skills": ["Skill 1", "Skill 2"],
  "education": {education_json}
}}

ONLY return JSON. No explanations.
"""

SECTION_PROMPT = """You are a professional resume writer. Rewrite the "{section}" section of a resume.
{instructions}
Use ONLY facts from the input. Do not invent employers, dates, degrees or skills.

Input:
{text}

Return VALID JSON ONLY in this format:
{{"{section}": {shape}}}

ONLY return JSON. No explanations.
"""

SECTION_GUIDES: dict[str, tuple[str, str]] = {
    "summary": ("Write a concise professional summary of at most 3 lines.", '"Improved summary"'),
    "skills": ("Return a clean, deduplicated, ATS-ready list of skills.", '["Skill 1", "Skill 2"]'),
    "experience": (
        "Keep one line per role in the form 'Role at Company - Duration', rewritten as achievement-based wording.",
        '["Role at Company - Duration"]',
    ),
    "projects": (
        "Keep one line per project in the form 'Title - Tech - Duration' with clearer wording.",
        '["Title - Tech - Duration"]',
    ),
    "education": (
        "Keep one line per entry in the form 'Degree, Institution, Year'; only fix wording and formatting.",
        '["Degree, Institution, Year"]',
    ),
    "certifications": ("Return one certification per entry with consistent naming.", '["Certification 1"]'),
}


@dataclass
class EnhancementResult:
    section: str
    value: Any
    model: str | None = None  # None when the value is the echoed input


def _get_client() -> OpenAI:
    """OpenAI client; OPENAI_BASE_URL points it at any OpenAI-compatible provider."""
    return OpenAI(
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url or None,
        timeout=settings.http_request_timeout,
        max_retries=0,
    )


def call_model(prompt: str, model: str) -> str:
    """Single text completion. Transport errors, non-2xx responses and empty replies raise OpenAIError."""
    resp = _get_client().chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": prompt}],
        temperature=settings.enhancer_temperature,
    )
    # content-filtered replies from some compatible providers come back with no choices
    if not resp.choices:
        raise OpenAIError(f"Empty reply (no choices) from model={model}")
    return (resp.choices[0].message.content or "").strip()


def try_in_order(
    strategies: Sequence[str],
    attempt: Callable[[str], T],
    retry_on: tuple[type[Exception], ...] = (OpenAIError,),
) -> T:
    """
    Run attempt(strategy) for each strategy in order and return the first result.
    Errors of the retry_on types are recorded and the next strategy is tried;
    raises EnrichmentFailure with every recorded error when none succeeds.
    """
    errors: list[tuple[str, Exception]] = []
    for strategy in strategies:
        try:
            logger.info("Enhancement attempt model=%s", strategy)
            return attempt(strategy)
        except retry_on as e:
            logger.warning("Enhancement model failed model=%s error=%s", strategy, e)
            errors.append((strategy, e))
    raise EnrichmentFailure(errors)


def extract_json_object(text: str) -> dict | None:
    """Pull the first {...} span out of free-form model output. None if absent or invalid."""
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _original_sections(raw: dict) -> dict:
    return {
        "summary": raw.get("summary"),
        "experience": raw.get("experience"),
        "skills": raw.get("skills", raw.get("technical_skills")),
        "education": raw.get("education"),
    }


def enhance_resume(raw: dict) -> dict:
    """
    Rewrite summary, experience, skills and education with the first model that answers.
    Returns {"summary", "experience", "skills", "education"}, each falling back to the input value.
    When every model fails (or no API key is configured) the very same `raw` object is returned.
    """
    if not settings.openai_api_key:
        logger.warning("openai_api_key not set - resume enhancement skipped")
        return raw

    original = _original_sections(raw)
    prompt = RESUME_PROMPT.format(
        resume_json=json.dumps(raw, indent=2, default=str),
        education_json=json.dumps(raw.get("education") or [], default=str),
    )

    def attempt(model: str) -> dict:
        output = call_model(prompt, model)
        parsed = extract_json_object(output)
        if parsed is None:
            logger.warning("Could not parse JSON from model=%s, using original sections", model)
            parsed = original
        return {key: parsed.get(key) or original[key] for key in original}

    try:
        return try_in_order(settings.enhancer_models, attempt)
    except EnrichmentFailure as e:
        logger.error("All models failed - returning raw data. %s", e)
        return raw
    except Exception:
        logger.exception("Resume enhancement failed unexpectedly - returning raw data")
        return raw


def enhance_section(section: str, text: str) -> EnhancementResult:
    """Enhance one form section. On any failure the input text is echoed back."""
    echo = EnhancementResult(section=section, value=text)
    if section not in SECTION_GUIDES:
        logger.warning("Unknown section %r, echoing input", section)
        return echo
    if not (text or "").strip():
        return echo
    if not settings.openai_api_key:
        logger.warning("openai_api_key not set - section enhancement skipped section=%s", section)
        return echo

    instructions, shape = SECTION_GUIDES[section]
    prompt = SECTION_PROMPT.format(section=section, instructions=instructions, text=text, shape=shape)

    def attempt(model: str) -> EnhancementResult:
        parsed = extract_json_object(call_model(prompt, model))
        value = (parsed or {}).get(section)
        if not value:
            logger.warning("No usable %s in reply from model=%s, echoing input", section, model)
            return echo
        return EnhancementResult(section=section, value=value, model=model)

    try:
        return try_in_order(settings.enhancer_models, attempt)
    except EnrichmentFailure as e:
        logger.error("Section enhancement failed section=%s. %s", section, e)
        return echo
    except Exception:
        logger.exception("Section enhancement failed unexpectedly section=%s, echoing input", section)
        return echo
