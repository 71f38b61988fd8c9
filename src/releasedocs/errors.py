from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    DOCUMENT_FETCH_FAILED = "DOCUMENT_FETCH_FAILED"
    SHARE_FETCH_FAILED = "SHARE_FETCH_FAILED"
    SPEC_FETCH_FAILED = "SPEC_FETCH_FAILED"
    IMAGE_FETCH_FAILED = "IMAGE_FETCH_FAILED"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    NAVIGATION_CONFIG_INVALID = "NAVIGATION_CONFIG_INVALID"


class ReleaseDocsError(Exception):
    """Raised for all expected failure conditions of a single unit of work.

    A unit is one document, one API description, one image or the
    navigation update. Callers at the pipeline level catch it, log the code
    and move on to the next unit; it never aborts the whole run.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable
