"""Error taxonomy for the reading generation and scoring pipeline."""

from __future__ import annotations


class ReadingError(Exception):
    code = "reading_error"

    def __init__(self, message: str, payload: dict | None = None):
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


class NoJsonFound(ReadingError):
    """The completion contained no `{...}` span at all."""

    code = "no_json_found"


class ParseFailure(ReadingError):
    """The JSON span could not be parsed even after repairs."""

    code = "parse_failure"


class EmptyGeneration(ReadingError):
    code = "empty_generation"


class UpstreamServiceError(ReadingError):
    """Network or HTTP failure talking to the completion service."""

    code = "upstream_service_error"


class ReadingValidationError(ReadingError):
    code = "validation_error"


def failure_result(exc: Exception, data=None) -> dict:
    """Convert an exception into the tagged failure dict returned by generators."""

    code = getattr(exc, "code", "unexpected_error")
    message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
    return {
        "success": False,
        "error": message,
        "errorCode": code,
        "data": {} if data is None else data,
    }
