from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


class CrmError(RuntimeError):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class InvalidInput(CrmError):
    """Malformed, missing or out-of-format fields. Raised before any write."""

    status_code = 400

    def __init__(self, message: str, errors: list[ValidationError] | None = None) -> None:
        super().__init__(message)
        self.errors = list(errors or [])

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.errors:
            body["details"] = [{"field": e.field, "message": e.message} for e in self.errors]
        return body


class NotFoundError(CrmError):
    status_code = 404


class ConflictError(CrmError):
    """Uniqueness violation detected by the store (e.g. duplicate phone number)."""

    status_code = 409
