from __future__ import annotations


class AssistError(Exception):
    """Base class for failures surfaced to the user as an error body."""

    code = "assist_error"
    status_code = 500

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(AssistError):
    code = "configuration_error"
    status_code = 503


class ValidationError(AssistError):
    """A local precondition failed; nothing was sent to an oracle."""

    code = "validation_error"
    status_code = 422


class RecognitionError(AssistError):
    code = "recognition_error"
    status_code = 502


class OracleError(AssistError):
    code = "oracle_error"
    status_code = 502
