"""
Periodic cleanup: remove rendered PDFs left in pdf_output_dir when per-request cleanup failed.
Resume rows are never touched (drafts without a PDF stay visible in history).
Run via cron or: python -c "from backend.app.tasks.cleanup import run_cleanup; print(run_cleanup())"
"""
import time
from pathlib import Path

from backend.app.core.config import STALE_PDF_MAX_AGE_HOURS, settings
from backend.app.core.logging_config import get_logger

logger = get_logger("tasks.cleanup")


def cleanup_stale_pdfs(output_dir: Path, max_age_hours: int = STALE_PDF_MAX_AGE_HOURS) -> dict:
    """Delete *.pdf files in output_dir older than max_age_hours."""
    if not output_dir.exists():
        return {"deleted": 0, "failed": 0}
    cutoff = time.time() - max_age_hours * 3600
    deleted = failed = 0
    for pdf in output_dir.glob("*.pdf"):
        try:
            if pdf.stat().st_mtime < cutoff:
                pdf.unlink()
                deleted += 1
        except OSError as e:
            failed += 1
            logger.warning("Could not remove stale PDF %s: %s", pdf, e)
    logger.info("Stale PDF cleanup dir=%s deleted=%d failed=%d", output_dir, deleted, failed)
    return {"deleted": deleted, "failed": failed}


def run_cleanup() -> dict:
    """Run cleanup against the configured render output directory."""
    return cleanup_stale_pdfs(Path(settings.pdf_output_dir))
