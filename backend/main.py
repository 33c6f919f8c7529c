"""
FastAPI application entry point
"""
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from backend.app.api.v1 import resume
from backend.app.core.config import settings
from backend.app.core.exceptions import ResumeServiceError
from backend.app.core.logging_config import get_logger, setup_logging
from backend.app.db.base import Base
from backend.app.db.session import engine

# Import models so they register with Base.metadata
import backend.app.models  # noqa: F401

setup_logging()
logger = get_logger("main")

# Create database tables
try:
    Base.metadata.create_all(bind=engine)
except Exception as e:
    logger.error("Database error: %s", e)

# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="Resume builder API: PDF generation from LaTeX templates, AI enhancement, history",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=r"exp://.*",
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(ResumeServiceError)
async def resume_service_error_handler(request: Request, exc: ResumeServiceError):
    """Pipeline errors reach the client as {success: false, error} with the stage's status."""
    logger.warning("Request failed path=%s status=%s error=%s", request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg', 'invalid request')}" if where else first.get("msg", "invalid request")
    return JSONResponse(status_code=400, content={"success": False, "error": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error path=%s", request.url.path)
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


# Include routers
app.include_router(resume.router, prefix="/api/resumes", tags=["resumes"])

# Serve locally stored resumes and the raw templates (create dir if missing)
upload_path = Path(settings.upload_dir)
upload_path.mkdir(parents=True, exist_ok=True)
app.mount(f"/{settings.upload_dir}", StaticFiles(directory=settings.upload_dir), name="resumes")
app.mount("/templates", StaticFiles(directory=settings.templates_dir), name="templates")


@app.get("/")
def read_root():
    """Root endpoint"""
    return {"message": f"{settings.app_name} API", "version": settings.app_version}


@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
