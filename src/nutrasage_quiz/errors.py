class QuizFunnelError(Exception):
    """Base exception for the project."""


class ConfigError(QuizFunnelError):
    """Raised when Supabase settings are missing from the environment."""


class ReferenceDataError(QuizFunnelError):
    """Raised when questions / options / tags / rules / products cannot be fetched."""


class PersistenceError(QuizFunnelError):
    """Raised when a quiz response or answer cannot be written."""


class QuizValidationError(QuizFunnelError):
    """Raised when a submitted quiz is missing or has invalid personal details."""

    def __init__(self, message: str, fields=None):
        super().__init__(message)
        self.fields = list(fields or [])


class ResultNotFoundError(QuizFunnelError):
    """Raised when a saved result id cannot be parsed or loaded."""
