"""Domain errors surfaced to the API layer."""


class ConfigNotFoundError(LookupError):
    """Raised when no active prelander configuration resolves."""


class InvalidEmailError(ValueError):
    """Raised when a captured email fails validation."""
