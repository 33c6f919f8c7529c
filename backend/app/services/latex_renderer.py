"""
LaTeX resume rendering: canonical resume -> section blocks -> template placeholders -> pdflatex -> PDF file.

Templates are plain .tex files under settings.templates_dir containing {{PLACEHOLDER}} tokens.
Every token occurrence is replaced literally; values are LaTeX-escaped before insertion.
"""
import re
import shutil
import subprocess
import tempfile
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from backend.app.core.config import LATEX_BLANK_ITEM, settings
from backend.app.core.exceptions import CompileError, TemplateNotFound
from backend.app.core.logging_config import get_logger
from backend.app.schemas.resume import Education, Experience, Project, ResumeData, resolve_template_id

logger = get_logger("services.latex_renderer")

_LATEX_SPECIALS = {
    "\\": "\\textbackslash{}",
    "&": "\\&",
    "%": "\\%",
    "#": "\\#",
    "$": "\\$",
    "_": "\\_",
    "{": "\\{",
    "}": "\\}",
    "^": "\\^{}",
    "~": "\\~{}",
    "<": "\\textless{}",
    ">": "\\textgreater{}",
}
_LATEX_SPECIALS_RE = re.compile("|".join(re.escape(c) for c in _LATEX_SPECIALS))

# pdflatex reports errors as lines starting with "! "
_LATEX_ERROR_RE = re.compile(r"^! (.+)$", re.MULTILINE)


@dataclass
class RenderedResume:
    pdf_path: Path
    filename: str
    template: str
    latex_source: str


def escape_latex(s: str | None) -> str:
    """Escape LaTeX special characters in a single pass (replacements are never re-escaped)."""
    if not s:
        return ""
    return _LATEX_SPECIALS_RE.sub(lambda m: _LATEX_SPECIALS[m.group(0)], str(s))


def safe_block(block: str) -> str:
    """An itemize with no \\item fails to compile; empty blocks become one blank item."""
    if not block or not block.strip():
        return LATEX_BLANK_ITEM
    return block


def resume_item(text: str) -> str:
    return f"\\resumeItem{{{escape_latex(text)}}}"


def resume_subheading(top_left: str, top_right: str, bottom_left: str, bottom_right: str) -> str:
    args = "".join(f"{{{escape_latex(a)}}}" for a in (top_left, top_right, bottom_left, bottom_right))
    return f"\\resumeSubheading{args}"


def _with_points(heading: str, points: list[str]) -> str:
    items = "\n".join(resume_item(p) for p in points)
    return f"{heading}\n\\resumeSubHeadingList\n{safe_block(items)}\n\\resumeSubHeadingListEnd"


def render_simple_items(items: list[str]) -> str:
    return "\n".join(resume_item(i) for i in items)


def render_experience(entries: list[Experience]) -> str:
    return "\n".join(
        _with_points(resume_subheading(e.role, e.duration, e.company, e.location), e.points)
        for e in entries
    )


def render_projects(entries: list[Project]) -> str:
    return "\n".join(
        _with_points(resume_subheading(p.title, p.duration, p.subtitle, p.tech), p.points)
        for p in entries
    )


def render_education(entries: list[Education]) -> str:
    return "\n".join(resume_subheading(e.degree, e.year, e.institution, " ") for e in entries)


def build_placeholders(resume: ResumeData) -> dict[str, str]:
    """Placeholder token -> rendered, escaped content."""
    return {
        "NAME": escape_latex(resume.name),
        "EMAIL": escape_latex(resume.email),
        "PHONE": escape_latex(resume.phone),
        "SUMMARY": escape_latex(resume.summary),
        "LINKEDIN": escape_latex(resume.linkedin),
        "GITHUB": escape_latex(resume.github),
        "TECHNICAL_SKILLS": safe_block(render_simple_items(resume.technical_skills)),
        "PROJECTS": safe_block(render_projects(resume.projects)),
        "EXPERIENCE": safe_block(render_experience(resume.experience)),
        "EDUCATION": safe_block(render_education(resume.education)),
        "CERTIFICATIONS": safe_block(render_simple_items(resume.certifications)),
    }


def fill_template(template_text: str, resume: ResumeData) -> str:
    """Replace every {{TOKEN}} occurrence with its rendered value."""
    out = template_text
    for token, value in build_placeholders(resume).items():
        out = out.replace(f"{{{{{token}}}}}", value)
    return out


def template_path(template_id: str) -> Path:
    return Path(settings.templates_dir) / f"{template_id}.tex"


def load_template(template_id: str | None) -> tuple[str, str]:
    """Resolve the id (unknown -> default) and read the template. Returns (resolved_id, text)."""
    resolved = resolve_template_id(template_id)
    path = template_path(resolved)
    if not path.exists():
        raise TemplateNotFound(f"Template not found: {path}")
    return resolved, path.read_text(encoding="utf-8")


def _compiler_message(stdout: str, stderr: str) -> str:
    errors = _LATEX_ERROR_RE.findall(stdout)
    if errors:
        return "; ".join(e.strip() for e in errors[:5])
    combined = " ".join(s.strip() for s in (stdout, stderr) if s.strip())
    return combined[-1000:] or "Unknown error"


def compile_latex_to_pdf(latex_source: str, output_path: Path) -> Path:
    """Compile LaTeX source with pdflatex and write the PDF to output_path."""
    with tempfile.TemporaryDirectory() as tmp:
        work_dir = Path(tmp)
        tex_path = work_dir / "resume.tex"
        tex_path.write_text(latex_source, encoding="utf-8")

        try:
            subprocess.run(
                [
                    settings.latex_compiler,
                    "-interaction=nonstopmode",
                    "-halt-on-error",
                    "-output-directory",
                    str(work_dir),
                    str(tex_path),
                ],
                capture_output=True,
                timeout=settings.latex_compile_timeout,
                check=True,
                cwd=str(work_dir),
            )
        except subprocess.CalledProcessError as e:
            stdout = (e.stdout or b"").decode(errors="replace")
            stderr = (e.stderr or b"").decode(errors="replace")
            message = _compiler_message(stdout, stderr)
            logger.error("pdflatex failed: %s", message)
            raise CompileError(f"LaTeX compilation failed: {message}") from e
        except subprocess.TimeoutExpired as e:
            raise CompileError(
                f"LaTeX compilation timed out after {settings.latex_compile_timeout}s"
            ) from e
        except FileNotFoundError as e:
            raise CompileError(
                f"{settings.latex_compiler} not found. Install LaTeX: macOS: brew install --cask mactex | "
                "Linux: apt install texlive-latex-base | Windows: MiKTeX"
            ) from e

        pdf_path = work_dir / "resume.pdf"
        if not pdf_path.exists():
            raise CompileError("PDF was not produced by pdflatex")
        output_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(pdf_path, output_path)
    return output_path


def pdf_filename(name: str) -> str:
    """'Jane Doe' -> 'Jane_Doe_<millis>_<rand>.pdf'"""
    safe = re.sub(r"\s+", "_", (name or "").strip())
    safe = re.sub(r"[^\w\-.]", "", safe) or "resume"
    return f"{safe}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}.pdf"


def generate_resume_pdf(resume: ResumeData, template_id: str | None) -> RenderedResume:
    """Render the resume into the chosen template and compile it into settings.pdf_output_dir."""
    resolved, template_text = load_template(template_id)
    latex_source = fill_template(template_text, resume)
    filename = pdf_filename(resume.name)
    output_path = Path(settings.pdf_output_dir) / filename

    started = time.monotonic()
    compile_latex_to_pdf(latex_source, output_path)
    logger.info(
        "Resume PDF compiled template=%s file=%s elapsed_ms=%d",
        resolved,
        filename,
        int((time.monotonic() - started) * 1000),
    )
    return RenderedResume(
        pdf_path=output_path,
        filename=filename,
        template=resolved,
        latex_source=latex_source,
    )
