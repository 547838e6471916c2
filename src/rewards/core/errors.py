"""Shared exception base for business rule failures."""


class RuleViolation(Exception):
    """Raised when a domain rule refuses an operation.

    ``detail`` is user-facing; ``status_code`` is the HTTP status the API layer
    responds with.
    """

    def __init__(self, detail: str, status_code: int = 400) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
