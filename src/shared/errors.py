"""
Error types shared by every service.

Two kinds flow through the system:
- InputError: malformed or out-of-range caller input, never retryable.
- ServiceError: a collaborator or scoring failure, tagged with the
  originating service, a machine-readable code and a retryable flag.
"""


class InputError(Exception):
    """Invalid caller input, rejected before any session starts."""

    def __init__(self, message: str, field: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message)
        self.message = message
        self.field = field
        self.code = code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "field": self.field, "code": self.code}


class ServiceError(Exception):
    """Failure reported by a collaborator (scraper, parser, LLM)."""

    def __init__(
        self,
        message: str,
        service: str,
        code: str,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.service = service
        self.code = code
        self.retryable = retryable

    def __repr__(self) -> str:
        return (
            f"ServiceError(service={self.service!r}, code={self.code!r}, "
            f"retryable={self.retryable}, message={self.message!r})"
        )


class SessionNotFoundError(KeyError):
    """Raised when a session id is not registered in the store."""


class SessionClosedError(RuntimeError):
    """Raised when mutating a session that already reached a terminal status."""
