"""
Domain exceptions.
"""


class ValidationError(ValueError):
    """Malformed or missing scalar report parameter (e.g. an unparseable date)."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
