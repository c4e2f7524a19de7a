# ABOUTME: Exception hierarchy for wiki retrieval plus the boundary mapping to structured error responses
# ABOUTME: Transport, upstream API, malformed response, and domain (section lookup) failures

from typing import Any

from pydantic import BaseModel, Field

MAXLAG_CODE = "maxlag"


class WikiError(Exception):
    """Base exception for everything raised by the wiki retrieval pipeline."""

    pass


class WikiTransportError(WikiError):
    """Network failure, timeout, non-2xx HTTP status, or an undecodable body."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class EndpointDiscoveryError(WikiTransportError):
    """None of the candidate API paths answered for a wiki."""

    def __init__(self, wiki_url: str, tried: list[str]):
        super().__init__(f"no reachable API endpoint for {wiki_url} (tried {', '.join(tried)})")
        self.wiki_url = wiki_url
        self.tried = tried


class WikiAPIError(WikiError):
    """Well-formed error envelope returned by the MediaWiki API."""

    def __init__(self, code: str, message: str):
        super().__init__(f"mediawiki api error: {code}: {message}")
        self.code = code
        self.message = message

    @property
    def is_overloaded(self) -> bool:
        return self.code == MAXLAG_CODE


class WikiResponseError(WikiError):
    """Successful HTTP reply whose JSON lacks the envelope the operation needs."""

    pass


class MarkdownConversionError(WikiError):
    """HTML could not be rendered to markdown."""

    pass


class SectionNotFoundError(WikiError):
    """Requested section index is not present in the page outline."""

    def __init__(self, section_index: int, available_sections: int):
        super().__init__(
            f"section index {section_index} does not exist (page has {available_sections} sections)"
        )
        self.section_index = section_index
        self.available_sections = available_sections


class ErrorResponse(BaseModel):
    """Structured error as rendered to callers of the public operations."""

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable message")
    hint: str | None = Field(default=None, description="Suggested remediation")
    details: dict[str, Any] | None = Field(default=None, description="Extra structured context")


API_ERROR_HINTS = {
    "missingtitle": "The page doesn't exist. Try searching the wiki to find the correct title.",
    "nosuchsection": "The section doesn't exist. Fetch the page outline again to get fresh section indices.",
    MAXLAG_CODE: "The wiki server is experiencing high load. Wait a moment and try again.",
}

SECTION_NOT_FOUND_HINT = "Fetch the page outline again to get fresh section indices."


def to_error_response(error: Exception) -> ErrorResponse:
    """Map any exception raised by the pipeline to an ``ErrorResponse``."""
    if isinstance(error, WikiAPIError):
        return ErrorResponse(error=error.code, message=error.message, hint=API_ERROR_HINTS.get(error.code))

    if isinstance(error, SectionNotFoundError):
        return ErrorResponse(
            error="section_not_found",
            message=str(error),
            hint=SECTION_NOT_FOUND_HINT,
            details={
                "section_index": error.section_index,
                "available_sections": error.available_sections,
            },
        )

    if isinstance(error, WikiTransportError) and error.status_code is not None:
        return ErrorResponse(error="internal_error", message=str(error), details={"status_code": error.status_code})

    return ErrorResponse(error="internal_error", message=str(error))
