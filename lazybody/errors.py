class LazybodyError(Exception):
    """Base error for lazybody."""


class ConstructionError(LazybodyError):
    """Raised when a response handle is missing or unusable."""


class DecodeSetupError(LazybodyError):
    """Raised when a decompressor cannot be initialized from the body stream."""


class ReadError(LazybodyError):
    """Raised when draining the (possibly decompressed) body stream fails."""


class ParseError(LazybodyError):
    """Raised when the decoded body is not valid JSON for the requested target."""


class PersistError(LazybodyError):
    """Raised when the decoded body cannot be written to a file."""


class HTTPError(LazybodyError):
    """Raised by raise_for_status() for non-ok status codes."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code
