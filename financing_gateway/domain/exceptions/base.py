"""Base domain exception."""


class DomainException(Exception):
    """
    Base exception for financing rule violations.

    `code` is the stable identifier returned to API clients in the
    `error` field; `message` is the human-readable explanation.
    """

    code = "DOMAIN_ERROR"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)
