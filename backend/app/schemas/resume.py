"""
Resume Pydantic schemas - canonical resume document plus API request/response models
"""
from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from backend.app.core.config import DEFAULT_TEMPLATE_ID, TEMPLATE_IDS
from backend.app.core.logging_config import get_logger
from backend.app.services.field_parser import coerce_section

logger = get_logger("schemas.resume")

SectionName = Literal["summary", "skills", "experience", "projects", "education", "certifications"]


def resolve_template_id(template: Optional[str]) -> str:
    """Unknown or missing template ids resolve to the default template; never rejected."""
    if template in TEMPLATE_IDS:
        return template
    if template:
        logger.info("Unknown template id %r, using %s", template, DEFAULT_TEMPLATE_ID)
    return DEFAULT_TEMPLATE_ID


# --- Nested schemas ---
class Experience(BaseModel):
    role: str = ""
    company: str = ""
    duration: str = ""
    location: str = ""
    points: List[str] = Field(default_factory=list)


class Project(BaseModel):
    title: str
    duration: str = ""
    subtitle: str = ""
    tech: str = ""
    points: List[str] = Field(default_factory=list)


class Education(BaseModel):
    degree: str
    institution: str = ""
    year: str = ""


class ResumeData(BaseModel):
    """Canonical resume document. List sections accept raw form text, strings or records."""
    name: str
    email: str
    summary: str
    phone: str = ""
    linkedin: str = ""
    github: str = ""
    technical_skills: List[str] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    experience: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("name", "email", "summary", "phone", "linkedin", "github", mode="before")
    @classmethod
    def _strip_text(cls, v: Any) -> Any:
        if v is None:
            return ""
        # JSON clients send numeric phones
        if isinstance(v, (str, int, float)):
            return str(v).strip()
        return v

    @field_validator("name", "email", "summary")
    @classmethod
    def _required(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("technical_skills", "projects", "experience", "education", "certifications", mode="before")
    @classmethod
    def _coerce_section(cls, v: Any, info) -> list:
        return coerce_section(info.field_name, v)


# --- Requests ---
class GenerateResumeIn(BaseModel):
    """Submission payload. Keys accepted in both snake_case and the mobile client's camelCase."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = None
    resume_data: Optional[dict] = Field(default=None, alias="resumeData")
    template: Optional[str] = None
    use_ai: bool = Field(default=False, alias="useAI")

    @field_validator("user_id", mode="before")
    @classmethod
    def _user_id_str(cls, v: Any) -> Any:
        if v is None:
            return None
        return str(v).strip() or None


class EnhanceSectionIn(BaseModel):
    section: SectionName
    text: str = ""


# --- Responses ---
class GenerateResumeOut(BaseModel):
    success: bool = True
    pdf_url: str
    resume_id: int
    template: str


class ResumeHistoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    email: str
    phone: Optional[str] = ""
    template: str
    summary: str
    technical_skills: List[Any] = Field(default_factory=list)
    projects: List[Any] = Field(default_factory=list)
    experience: List[Any] = Field(default_factory=list)
    education: List[Any] = Field(default_factory=list)
    certifications: List[Any] = Field(default_factory=list)
    linkedin: Optional[str] = None
    github: Optional[str] = None
    pdf_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def status(self) -> str:
        """'ready' once the PDF is attached; 'draft' for rows whose render or upload never completed."""
        return "ready" if self.pdf_url else "draft"


class ResumeHistoryOut(BaseModel):
    success: bool = True
    data: List[ResumeHistoryItem] = Field(default_factory=list)


class EnhanceSectionOut(BaseModel):
    success: bool = True
    enhanced: dict
    model: Optional[str] = None
    preview: List[str] = Field(default_factory=list)  # display lines for the section
    form_text: str = ""  # what the form field holds once the preview is applied
