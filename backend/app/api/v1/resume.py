"""
Resume endpoints - generate PDF resumes, list history, enhance single form sections, download files
"""
from pathlib import Path
from urllib.error import URLError
from urllib.request import urlopen

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, Response
from sqlalchemy.orm import Session

from backend.app.core.config import PDF_MIME_TYPE, settings
from backend.app.core.dependencies import get_db
from backend.app.core.logging_config import get_logger
from backend.app.schemas.resume import (
    EnhanceSectionIn,
    EnhanceSectionOut,
    GenerateResumeIn,
    GenerateResumeOut,
    ResumeHistoryItem,
    ResumeHistoryOut,
)
from backend.app.services.enhancement_preview import preview_enhancement
from backend.app.services.enhancer import enhance_section
from backend.app.services.resume_service import generate_resume as generate_resume_svc
from backend.app.services.resume_service import get_resume, list_history
from backend.app.services.s3_service import local_path_for_url

logger = get_logger("api.resume")
router = APIRouter()


@router.post("", response_model=GenerateResumeOut)
def generate_resume(payload: GenerateResumeIn, db: Session = Depends(get_db)):
    """
    Save the resume, render it with the chosen template and return the PDF URL.

    Unknown templates fall back to template1. Email delivery and AI enhancement (useAI)
    are best-effort and never fail the request.
    """
    return generate_resume_svc(
        db=db,
        user_id=payload.user_id,
        resume_data=payload.resume_data,
        template=payload.template,
        use_ai=payload.use_ai,
    )


@router.get("/history/{user_id}", response_model=ResumeHistoryOut)
def resume_history(user_id: str, db: Session = Depends(get_db)):
    """All resumes of a user, newest first. status is 'draft' for rows without a PDF."""
    records = list_history(db, user_id)
    return {"success": True, "data": [ResumeHistoryItem.model_validate(r) for r in records]}


@router.post("/enhance-section", response_model=EnhanceSectionOut)
def enhance_resume_section(payload: EnhanceSectionIn):
    """
    AI rewrite of one form section. Falls back to echoing the input text.
    preview holds the display lines, form_text the field value once the user applies it.
    """
    result = enhance_section(payload.section, payload.text)
    preview, form_text = preview_enhancement(result.section, result.value)
    return {
        "success": True,
        "enhanced": {result.section: result.value},
        "model": result.model,
        "preview": preview,
        "form_text": form_text,
    }


@router.get("/{resume_id}/file")
def get_resume_file(resume_id: int, db: Session = Depends(get_db)):
    """Download the PDF. Remote (S3) files are proxied to avoid CORS; local uploads are served directly."""
    record = get_resume(db, resume_id)
    if not record or not record.pdf_url:
        raise HTTPException(status_code=404, detail="Resume not found")
    resume_url = record.pdf_url
    filename = Path(resume_url).name.split("?")[0] or "resume.pdf"

    if resume_url.startswith("http://") or resume_url.startswith("https://"):
        try:
            with urlopen(resume_url, timeout=settings.http_request_timeout) as resp:
                data = resp.read()
        except (URLError, OSError) as exc:
            logger.exception("Failed to proxy resume from %s", resume_url)
            raise HTTPException(status_code=502, detail=f"Failed to fetch resume: {exc}") from exc
        logger.info("Proxied resume resume_id=%s bytes=%d", resume_id, len(data))
        return Response(
            content=data,
            media_type=PDF_MIME_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    resume_path = local_path_for_url(resume_url)
    if resume_path is None or not resume_path.exists():
        raise HTTPException(status_code=404, detail="Resume file not found")
    return FileResponse(resume_path, media_type=PDF_MIME_TYPE, filename=filename)
