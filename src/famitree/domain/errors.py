"""Domain errors."""


class ValidationError(ValueError):
    """Raised when an entity or a write would violate a domain rule (e.g. blank name)."""
