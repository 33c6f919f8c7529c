"""
Application configuration settings.
Loads from .env file first (overrides shell env for local dev), then pydantic reads from environment.
Production: set env vars in the platform (Docker, K8s, etc.); .env is optional.

All backend-related configs and constants are centralized here.
"""
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env path: backend/.env (absolute path, works regardless of cwd)
_BASE_DIR = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = (_BASE_DIR / ".env").resolve()

# Load .env into environment BEFORE pydantic reads. override=True ensures .env
# values override any shell env.
# When .env doesn't exist (prod), this is a no-op; platform env vars are used.
if _ENV_FILE.exists():
    load_dotenv(_ENV_FILE, override=True)


class Settings(BaseSettings):
    """Application settings. Source: env vars (after dotenv load)."""

    # App
    app_name: str = "Resume Builder"
    app_version: str = "1.0.0"
    port: int = 3000
    cors_origins: list[str] = [
        "http://localhost:19006",
        "http://localhost:19000",
        "http://127.0.0.1:19000",
    ]

    # Database
    database_url: str = "sqlite:///./resume_builder.db"

    # Upload & storage
    upload_dir: str = "uploads/resumes"
    pdf_output_dir: str = "pdfs"
    templates_dir: str = str(_BASE_DIR / "app" / "templates")

    # HTTP / network
    http_request_timeout: int = 30

    # LaTeX
    latex_compiler: str = "pdflatex"
    latex_compile_timeout: int = 60

    # AWS S3
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "ap-southeast-1"
    aws_bucket_name: str = "resumes"
    s3_key_prefix: str = "pdfs"

    # OpenAI-compatible text generation
    openai_api_key: str = ""
    openai_base_url: str = ""
    enhancer_models: list[str] = ["gpt-4o-mini", "gpt-4.1-mini"]
    enhancer_temperature: float = 0.4

    # Email (explicit SMTP first, Gmail app password as fallback)
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_use_ssl: bool = False
    smtp_from: str = ""
    email_user: str = ""
    email_pass: str = ""

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


# --- Constants (non-env, business config) ---

# Templates: first entry is the default every unknown id resolves to
TEMPLATE_IDS: tuple[str, ...] = ("template1", "template2", "template3", "template4")
DEFAULT_TEMPLATE_ID: str = TEMPLATE_IDS[0]

# Section kinds accepted by the enhance-section endpoint
ENHANCE_SECTIONS: tuple[str, ...] = (
    "summary",
    "skills",
    "experience",
    "projects",
    "education",
    "certifications",
)

# LaTeX rendering
LATEX_BLANK_ITEM: str = "\\resumeItem{ }"
PDF_MIME_TYPE: str = "application/pdf"

# Email
MAIL_DEFAULT_FROM: str = '"Resume Builder" <no-reply@resume-builder.local>'
GMAIL_SMTP_HOST: str = "smtp.gmail.com"
GMAIL_SMTP_PORT: int = 465

# Maintenance
STALE_PDF_MAX_AGE_HOURS: int = 24
