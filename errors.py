"""
Error taxonomy for the solver and practice flows.

Every failure the controllers can see falls into one of three kinds:

- InvalidInputError: bad local input or a violated precondition. Never sent
  upstream.
- ServiceError: transport, remote, auth or timeout failure from the
  Reasoning Service.
- MalformedResponseError: a response arrived but failed shape validation.
"""

from typing import Optional


class MathTutorError(Exception):
    """Base class for all errors raised by this package."""

    default_user_message = "Something went wrong. Please try again."

    def __init__(self, message: str, *, user_message: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.user_message = user_message or self.default_user_message


class InvalidInputError(MathTutorError):
    default_user_message = "The input was not accepted."

    def __init__(self, message: str, *, user_message: Optional[str] = None):
        # Local input problems are safe to show verbatim.
        super().__init__(message, user_message=user_message or message)


class ServiceError(MathTutorError):
    default_user_message = "The reasoning service could not be reached."


class AuthorizationError(ServiceError):
    default_user_message = (
        "Missing or rejected API key. Set GOOGLE_API_KEY to use the AI features."
    )


class MalformedResponseError(MathTutorError):
    default_user_message = "The reasoning service returned an unexpected response."

    def __init__(
        self,
        message: str,
        *,
        field: str = "<root>",
        user_message: Optional[str] = None,
    ):
        super().__init__(f"{field}: {message}", user_message=user_message)
        self.field = field
