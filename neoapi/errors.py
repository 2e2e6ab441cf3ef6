from typing import TYPE_CHECKING, Optional

from neoapi.constants import (
    API_KEY_ENV,
    EXIT_CODE_FAILURE,
    EXIT_CODE_INVALID_CONFIG,
)

if TYPE_CHECKING:
    from neoapi.models import LLMOutput


class NeoApiError(Exception):
    """
    Base exception for neoapi errors.

    Args:
        message (str): The error message.
    """
    def __init__(self, message: str = "An error occurred while tracking LLM output."):
        self.message = message
        super().__init__(self.message)

    def get_exit_code(self) -> int:
        """
        Get the exit code associated with this error.

        Returns:
            int: The exit code.
        """
        return EXIT_CODE_FAILURE


class ConfigurationError(NeoApiError):
    """
    Error raised when the client configuration is unusable.

    Args:
        reason (Optional[str]): What is wrong with the configuration.
    """
    def __init__(self, reason: Optional[str] = None,
                 message: str = "Invalid neoapi client configuration: {reason}"):
        self.reason = reason or "unknown reason"
        super().__init__(message.format(reason=self.reason))

    def get_exit_code(self) -> int:
        return EXIT_CODE_INVALID_CONFIG


class MissingApiKeyError(ConfigurationError):
    """
    Error raised when no API key was given directly or through the environment.
    """
    def __init__(self):
        super().__init__(
            reason=f"API key must be provided either directly or through "
                   f"{API_KEY_ENV} environment variable."
        )


class RetryableHTTPError(NeoApiError):
    """
    Raised for a non-2xx response so the attempt is retried.

    Args:
        status_code (int): The HTTP status code of the response.
    """
    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"Retryable HTTP {status_code}")


class DeliveryError(NeoApiError):
    """
    Error describing an event whose every delivery attempt failed.

    Args:
        event (LLMOutput): The event that could not be delivered.
        endpoint (str): The endpoint the event was posted to.
        attempts (int): How many requests were made.
        reason (Optional[str]): The last failure.
    """
    def __init__(self, event: "LLMOutput", endpoint: str, attempts: int,
                 reason: Optional[str] = None):
        self.event = event
        self.endpoint = endpoint
        self.attempts = attempts
        info = f": {reason}" if reason else ""
        super().__init__(
            f"Failed to send item to {endpoint} after {attempts} attempts{info}"
        )
