"""
Error taxonomy for the resume pipeline.

BadRequest, StorageError and RenderError stop the pipeline and reach the caller
with their message and status code. EnrichmentFailure and DeliveryFailure are
absorbed inside the services and never change the caller-visible outcome.
"""


class ResumeServiceError(Exception):
    """Base error carrying the HTTP status the API layer should answer with."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequest(ResumeServiceError):
    status_code = 400


class StorageError(ResumeServiceError):
    """Record store or artifact store failure."""

    status_code = 500


class RenderError(ResumeServiceError):
    status_code = 500


class TemplateNotFound(RenderError):
    pass


class CompileError(RenderError):
    pass


class EnrichmentFailure(Exception):
    """Every model attempt failed. Carries the per-model errors in order."""

    def __init__(self, errors: list[tuple[str, Exception]]):
        self.errors = errors
        summary = "; ".join(f"{name}: {err}" for name, err in errors) or "no models configured"
        super().__init__(f"All enhancement attempts failed - {summary}")


class DeliveryFailure(Exception):
    pass
