"""
Checklist domain errors.

Every error carries the HTTP status the API answers with and a short machine
code so the operator client can map a response back to the same class.
"""
from typing import Optional


class ChecklistError(Exception):
    status_code = 400
    code = "checklist_error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ChecklistValidationError(ChecklistError):
    """Missing badge, forklift, answers or fail comments; nothing was persisted"""
    status_code = 422
    code = "validation_error"


class BadgeNotAuthorizedError(ChecklistError):
    status_code = 403
    code = "badge_not_authorized"


class SubmissionFailedError(ChecklistError):
    """Store or network failure; the submission was not recorded and may be retried"""
    status_code = 503
    code = "submission_failed"


class UniquenessConflictError(ChecklistError):
    status_code = 409
    code = "conflict"


class SubmissionInProgressError(ChecklistError):
    status_code = 409
    code = "submission_in_progress"


ERRORS_BY_CODE = {
    cls.code: cls
    for cls in (
        ChecklistValidationError,
        BadgeNotAuthorizedError,
        SubmissionFailedError,
        UniquenessConflictError,
        SubmissionInProgressError,
    )
}
