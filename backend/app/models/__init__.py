from backend.app.models.resume import Resume
