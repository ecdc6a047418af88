from typing import Optional


class ComplaintError(Exception):
    """Base for every failure the complaint operations report back to callers."""

    status_code = 400
    error = "ComplaintError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"ok": False, "error": self.error, "message": self.message}


class ValidationError(ComplaintError):
    status_code = 422
    error = "ValidationError"

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def to_dict(self) -> dict:
        out = super().to_dict()
        out["field"] = self.field
        return out


class NotFoundError(ComplaintError):
    status_code = 404
    error = "NotFoundError"


class InvalidStatusError(ComplaintError):
    status_code = 400
    error = "InvalidStatusError"

    def __init__(self, status: Optional[str]):
        super().__init__(f"Invalid status: {status!r}")
        self.status = status


class UniquenessViolation(ComplaintError):
    """A duplicate complaint number reached the store. Not retryable."""

    status_code = 500
    error = "UniquenessViolation"


class StorageError(ComplaintError):
    status_code = 500
    error = "StorageError"
