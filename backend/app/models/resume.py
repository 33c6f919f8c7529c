"""
Resume - one row per submitted resume. pdf_url stays empty until the PDF is rendered and uploaded.
"""
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text

from backend.app.db.base import Base


class Resume(Base):
    __tablename__ = "resumes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), default="")
    template = Column(String(32), nullable=False)
    summary = Column(Text, nullable=False)

    technical_skills = Column(JSON, default=list)
    projects = Column(JSON, default=list)
    experience = Column(JSON, default=list)
    education = Column(JSON, default=list)
    certifications = Column(JSON, default=list)

    linkedin = Column(String(512), nullable=True)
    github = Column(String(512), nullable=True)

    pdf_url = Column(String(1024), nullable=True)  # null = orphaned draft (render/upload never completed)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
