"""
Error taxonomy of the survey platform.

Every business error is terminal and carries enough detail for the caller to
act on (which rule failed), never internal state. ``StoreError`` is the only
retryable kind.
"""

from http import HTTPStatus
from typing import Any, Dict, Optional


class SurveyAppError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human readable error message
        status_code: HTTP status code used by the API layer
        code: Stable machine readable error code
        details: Additional error details
    """

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "SURVEY_APP_ERROR"
    retryable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the error envelope used in API responses."""
        payload = {"success": False, "message": self.message, "error": self.code}
        if self.details:
            payload["details"] = self.details
        return payload

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class NotFoundError(SurveyAppError):
    """Entity is absent, tombstoned, or not owned by the requesting user."""

    status_code = HTTPStatus.NOT_FOUND
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Survey", details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{resource} not found", details)


class ValidationError(SurveyAppError):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "Validation errors",
        field_errors: Optional[Dict[str, Any]] = None,
    ):
        details = {"field_errors": field_errors} if field_errors else None
        super().__init__(message, details)


class AlreadyPublishedError(SurveyAppError):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "ALREADY_PUBLISHED"

    def __init__(self):
        super().__init__("Survey is already published")


class AlreadyClosedError(SurveyAppError):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "ALREADY_CLOSED"

    def __init__(self):
        super().__init__("Survey is already closed")


class EmptyQuestionsError(SurveyAppError):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "EMPTY_QUESTIONS"

    def __init__(self):
        super().__init__("Cannot publish survey without questions")


class PublishedWithResponsesError(SurveyAppError):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "PUBLISHED_WITH_RESPONSES"

    def __init__(self, action: str = "update"):
        message = f"Cannot {action} published survey with existing responses"
        if action == "delete":
            message += ". Consider closing it instead."
        super().__init__(message, {"action": action})


class SurveyNotAcceptingResponsesError(SurveyAppError):
    status_code = HTTPStatus.UNPROCESSABLE_ENTITY
    code = "SURVEY_NOT_ACCEPTING_RESPONSES"

    def __init__(self, status: str):
        super().__init__(
            "Survey is not accepting responses", {"status": status}
        )


class DuplicateResponseError(SurveyAppError):
    status_code = HTTPStatus.CONFLICT
    code = "DUPLICATE_RESPONSE"

    def __init__(self):
        super().__init__("A response from this respondent already exists")


class StoreError(SurveyAppError):
    """Underlying persistence failure. Safe for the caller to retry."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    code = "STORE_ERROR"
    retryable = True

    def __init__(self, message: str = "Storage temporarily unavailable"):
        super().__init__(message)
