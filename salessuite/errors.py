"""
Error taxonomy shared by the AI services, stores and routes.
"""
from typing import List, Optional


class SalesSuiteError(Exception):
    """Base class for all application errors."""

    user_message = "An unexpected error occurred. Please try again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if message:
            self.user_message = message


class ValidationInputError(SalesSuiteError, ValueError):
    """Caller supplied missing or empty required fields."""

    user_message = "Required information is missing."


class AIServiceError(SalesSuiteError, RuntimeError):
    """Base for failures on the AI provider side of an operation."""

    user_message = "The AI service failed to respond. Please try again."


class ProviderError(AIServiceError):
    """The AI provider call failed or was rejected."""


class EmptyResponseError(AIServiceError):
    """The provider returned no usable text (empty, refused or filtered)."""

    user_message = "The AI service returned an empty response. Please try again."


class MalformedResponseError(AIServiceError):
    """
    Provider text did not parse into the expected structured shape.

    The raw text is kept for logs only and must never be shown to end users.
    """

    user_message = "The AI model returned an unexpected format. Please try again."

    def __init__(self, detail: str, raw_text: str = "", kind: str = "parse_error"):
        super().__init__(self.user_message)
        self.detail = detail
        self.raw_text = raw_text
        self.kind = kind

    def __str__(self):
        return f"{self.kind}: {self.detail}"


class PartialBatchLossError(AIServiceError):
    """A batch chunk came back with fewer results than rows submitted."""

    def __init__(self, missing_indices: List[int], partial_result=None):
        self.missing_indices = sorted(missing_indices)
        self.partial_result = partial_result
        count = len(self.missing_indices)
        super().__init__(
            f"The AI model did not return results for {count} row{'s' if count != 1 else ''}. "
            "Re-run the validation or accept the partial results."
        )


class DuplicateUserError(ValidationInputError):
    """Registration with an email that already has an account."""

    user_message = "An account with this email already exists."


class InvalidCredentialsError(SalesSuiteError):
    """Login with an unknown email or wrong password."""

    user_message = "Invalid email or password."


class NotFoundError(SalesSuiteError, LookupError):
    """Requested record does not exist for this user."""

    user_message = "Record not found."


class ApiError(SalesSuiteError):
    """Non-2xx response from the persistence API."""

    user_message = "An unknown error occurred"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
