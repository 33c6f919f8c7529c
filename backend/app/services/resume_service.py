"""
Resume service - single source of truth for resume generation and history.

Generation runs strictly in order:
    validate -> enrich (optional) -> persist draft -> render PDF -> store artifact
    -> attach URL -> email (best-effort) -> remove local PDF (best-effort)
A render or upload failure leaves the persisted row without pdf_url; it is never rolled back.
"""
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.exceptions import BadRequest, RenderError, StorageError
from backend.app.core.logging_config import get_logger
from backend.app.models.resume import Resume
from backend.app.schemas.resume import ResumeData, resolve_template_id
from backend.app.services.enhancer import enhance_resume
from backend.app.services.field_parser import normalize_points
from backend.app.services.latex_renderer import generate_resume_pdf
from backend.app.services.mailer import send_resume_email
from backend.app.services.s3_service import store_artifact

logger = get_logger("services.resume")

REQUIRED_FIELDS = ("name", "email", "summary")


def validate_submission(user_id: str | None, resume_data: dict | None) -> ResumeData:
    """Check mandatory fields and normalize every section into the canonical document."""
    if not user_id or not resume_data:
        raise BadRequest("user_id and resumeData required")
    if not isinstance(resume_data, dict):
        raise BadRequest("resumeData must be an object")
    missing = [f for f in REQUIRED_FIELDS if not str(resume_data.get(f) or "").strip()]
    if missing:
        raise BadRequest("name, email and summary required")
    try:
        return ResumeData.model_validate(resume_data)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(p) for p in first.get("loc", ()))
        raise BadRequest(f"Invalid resumeData {where}: {first.get('msg')}") from e


def merge_enhanced_experience(original: list[dict], enhanced: Any) -> list[dict]:
    """
    Fold rewritten experience back into the submitted entries.

    Role, company, duration and location always come from the submission; only points change.
    Records are matched by position. Bare bullet strings all go to a single entry, or are
    spread over the entries' existing point slots when the counts line up. Anything else
    keeps the submitted entries untouched.
    """
    if not original or not isinstance(enhanced, list) or not enhanced:
        return original

    if all(isinstance(item, dict) for item in enhanced):
        if len(enhanced) != len(original):
            logger.warning(
                "Enhanced experience has %d entries, submitted %d - keeping original",
                len(enhanced),
                len(original),
            )
            return original
        return [
            {**entry, "points": normalize_points(item.get("points")) or entry["points"]}
            for entry, item in zip(original, enhanced)
        ]

    if not all(isinstance(item, str) for item in enhanced):
        return original
    bullets = normalize_points(enhanced)
    if not bullets:
        return original
    if len(original) == 1:
        return [{**original[0], "points": bullets}]

    slots = [len(entry["points"]) for entry in original]
    if sum(slots) != len(bullets):
        logger.warning(
            "Cannot place %d enhanced bullets over %d entries - keeping original", len(bullets), len(original)
        )
        return original
    merged, start = [], 0
    for entry, count in zip(original, slots):
        merged.append({**entry, "points": bullets[start:start + count]})
        start += count
    return merged


def apply_enhancement(resume: ResumeData) -> ResumeData:
    """Run AI enhancement and fold it back in. Any failure keeps the original resume."""
    raw = resume.model_dump()
    enhanced = enhance_resume(raw)
    if enhanced is raw:
        return resume
    merged = {
        **raw,
        "summary": enhanced.get("summary") or raw["summary"],
        "experience": merge_enhanced_experience(raw["experience"], enhanced.get("experience")),
        "technical_skills": enhanced.get("skills") or raw["technical_skills"],
        "education": enhanced.get("education") or raw["education"],
    }
    try:
        return ResumeData.model_validate(merged)
    except ValidationError as e:
        logger.warning("Enhanced resume did not validate, keeping original: %s", e.errors()[:1])
        return resume


def persist_draft(db: Session, user_id: str, resume: ResumeData, template: str) -> Resume:
    data = resume.model_dump()
    record = Resume(
        user_id=user_id,
        name=data["name"],
        email=data["email"],
        phone=data["phone"],
        template=template,
        summary=data["summary"],
        technical_skills=data["technical_skills"],
        projects=data["projects"],
        experience=data["experience"],
        education=data["education"],
        certifications=data["certifications"],
        linkedin=data["linkedin"] or None,
        github=data["github"] or None,
    )
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("DB insert error user_id=%s error=%s", user_id, e)
        raise StorageError(f"Failed to save resume: {e}", status_code=400) from e
    return record


def attach_pdf_url(db: Session, record: Resume, pdf_url: str) -> None:
    try:
        record.pdf_url = pdf_url
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("DB update error resume_id=%s error=%s", record.id, e)
        raise StorageError(f"Failed to update resume: {e}") from e


def notify(email: str, pdf_path: Path, name: str, template: str) -> None:
    """Email the PDF. Failures are logged and never reach the caller."""
    try:
        send_resume_email(email, pdf_path, name, template)
    except Exception as e:
        logger.warning("Email failed to=%s error=%s", email, e)


def remove_local_pdf(pdf_path: Path) -> None:
    try:
        pdf_path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Temp PDF not removed path=%s error=%s", pdf_path, e)


def generate_resume(
    db: Session,
    user_id: str | None,
    resume_data: dict | None,
    template: str | None = None,
    use_ai: bool = False,
) -> dict:
    """
    Generate, store and deliver a resume PDF.

    Returns:
        { "success", "pdf_url", "resume_id", "template" }
    """
    resume = validate_submission(user_id, resume_data)
    chosen_template = resolve_template_id(template)

    if use_ai:
        resume = apply_enhancement(resume)

    record = persist_draft(db, user_id, resume, chosen_template)

    try:
        rendered = generate_resume_pdf(resume, chosen_template)
    except RenderError:
        logger.error("Render failed user_id=%s resume_id=%s - left as draft", user_id, record.id)
        raise

    try:
        pdf_url = store_artifact(rendered.pdf_path, rendered.filename, user_id)
        attach_pdf_url(db, record, pdf_url)
        notify(resume.email, rendered.pdf_path, resume.name, rendered.template)
    finally:
        remove_local_pdf(rendered.pdf_path)

    logger.info(
        "Resume generated user_id=%s resume_id=%s template=%s use_ai=%s",
        user_id,
        record.id,
        rendered.template,
        use_ai,
    )
    return {
        "success": True,
        "pdf_url": pdf_url,
        "resume_id": record.id,
        "template": rendered.template,
    }


def list_history(db: Session, user_id: str) -> list[Resume]:
    """User's resumes, newest first. Drafts without a PDF are included."""
    return (
        db.query(Resume)
        .filter(Resume.user_id == user_id)
        .order_by(Resume.created_at.desc(), Resume.id.desc())
        .all()
    )


def get_resume(db: Session, resume_id: int) -> Resume | None:
    return db.query(Resume).filter(Resume.id == resume_id).first()
