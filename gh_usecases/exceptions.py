"""Custom exception hierarchy for gh-usecases.

Every error raised by the wizard's collaborators carries an ``ErrorKind``
so the error display can be chosen from a fixed table instead of by
inspecting free-text messages.

Exception Hierarchy:
    GhUsecasesError (base)
    ├── ConfigurationError
    ├── AuthenticationError
    ├── ApiError
    │   └── NetworkError
    ├── ValidationError
    └── InvalidTransitionError

Example Usage:
    >>> from gh_usecases.exceptions import ConfigurationError
    >>> try:
    ...     document = json.loads(path.read_text())
    ... except json.JSONDecodeError as e:
    ...     raise ConfigurationError(f"Config file is not valid JSON: {path}") from e
"""

from gh_usecases.enums import ErrorKind


class GhUsecasesError(Exception):
    """Base exception for all gh-usecases errors.

    Attributes:
        message: Human-readable error description
        kind: Structured category used to pick the error display
    """

    default_kind = ErrorKind.UNKNOWN

    def __init__(self, message: str, kind: ErrorKind | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            kind: Error category; defaults to the class's ``default_kind``
        """
        self.message = message
        self.kind = kind or self.default_kind
        super().__init__(message)


class ConfigurationError(GhUsecasesError):
    """The persisted config document cannot be read or written.

    Examples:
        - Config file contains invalid JSON
        - Config file does not match the expected schema
        - Home directory is not writable
    """

    pass


class AuthenticationError(GhUsecasesError):
    """Authentication with GitHub failed or no token is available.

    Raised distinctly from transport failures: a missing ``gh`` executable,
    an unexpected ``gh auth`` failure, or a request attempted without a
    token all land here.

    Attributes:
        suggestion: Optional suggestion for resolution
    """

    default_kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, suggestion: str | None = None) -> None:
        self.suggestion = suggestion
        full_message = message
        if suggestion:
            full_message = f"{message}\nSuggestion: {suggestion}"
        super().__init__(full_message)
        # Keep the short message for display
        self.message = message


class ApiError(GhUsecasesError):
    """A GitHub or Gemini API call failed.

    Attributes:
        status_code: HTTP status code (if applicable)
        error_type: GraphQL error ``type`` (if applicable)
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind | None = None,
        status_code: int | None = None,
        error_type: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type

        full_message = message
        if status_code:
            full_message = f"{message} (HTTP {status_code})"

        super().__init__(full_message, kind)


class NetworkError(ApiError):
    """The API host could not be reached."""

    default_kind = ErrorKind.NETWORK


class ValidationError(GhUsecasesError):
    """User input was rejected before any network call was made."""

    default_kind = ErrorKind.VALIDATION


class InvalidTransitionError(GhUsecasesError):
    """An event arrived that the current wizard step cannot handle.

    This signals a programming error in a step component, not a user error.
    """

    def __init__(self, step: str, event: str) -> None:
        self.step = step
        self.event = event
        super().__init__(f"Event {event} is not valid in step {step}")
