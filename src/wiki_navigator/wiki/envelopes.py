# ABOUTME: Typed models for the MediaWiki Action API reply envelopes (query, parse, compare, error)
# ABOUTME: decode_response tries each known envelope in order and fails loudly when none fits

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from wiki_navigator.wiki.errors import WikiResponseError

CONTENT_KEY = "*"


def _unwrap_content(value: Any) -> Any:
    """Accept rendered text either as a bare string or as ``{"*": "..."}``."""
    if value is None or isinstance(value, str):
        return value or ""
    if isinstance(value, dict) and isinstance(value.get(CONTENT_KEY), str):
        return value[CONTENT_KEY]
    raise ValueError("text must be a string or an object with a '*' field")


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TitleRef(_Envelope):
    """Link or page reference; formatversion 1 puts the title under ``*``."""

    title: str = ""

    @model_validator(mode="before")
    @classmethod
    def _legacy_title(cls, data: Any) -> Any:
        if isinstance(data, dict) and "title" not in data and CONTENT_KEY in data:
            return {**data, "title": data[CONTENT_KEY]}
        return data


class CategoryRef(_Envelope):
    """Category attached to a page; the name arrives under ``category``, ``*`` or ``title``."""

    name: str = ""

    @model_validator(mode="before")
    @classmethod
    def _pick_name(cls, data: Any) -> Any:
        if isinstance(data, dict):
            for key in ("category", CONTENT_KEY, "title"):
                if isinstance(data.get(key), str):
                    return {"name": data[key]}
        return data


class TocEntry(_Envelope):
    """One row of the flat table of contents returned by ``prop=sections``."""

    toclevel: int = 1
    level: str = ""
    line: str = ""
    number: str = ""
    index: str = ""
    anchor: str = ""


class SiteGeneral(_Envelope):
    sitename: str = ""
    mainpage: str = ""
    lang: str = ""
    base: str = ""


class SiteNamespace(_Envelope):
    id: int
    name: str = ""

    @model_validator(mode="before")
    @classmethod
    def _legacy_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and "name" not in data and CONTENT_KEY in data:
            return {**data, "name": data[CONTENT_KEY]}
        return data


class SiteStatistics(_Envelope):
    articles: int = 0


class SearchHit(_Envelope):
    title: str
    snippet: str = ""
    wordcount: int = 0


class SearchInfo(_Envelope):
    suggestion: str = ""
    totalhits: int | None = None


class Revision(_Envelope):
    content: str = ""

    @model_validator(mode="before")
    @classmethod
    def _locate_content(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        main = data.get("slots", {}).get("main") if isinstance(data.get("slots"), dict) else None
        source = main if isinstance(main, dict) else data
        for key in ("content", CONTENT_KEY):
            if isinstance(source.get(key), str):
                return {"content": source[key]}
        return {"content": ""}


class QueryPage(_Envelope):
    pageid: int | None = None
    title: str = ""
    missing: bool = False
    redirect: bool = False
    revisions: list[Revision] = Field(default_factory=list)
    categories: list[CategoryRef] = Field(default_factory=list)
    links: list[TitleRef] = Field(default_factory=list)

    @field_validator("missing", "redirect", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        # formatversion 1 marks flags with an empty string
        return value is not None and value is not False


class CategoryMemberRecord(_Envelope):
    pageid: int | None = None
    title: str
    type: str = "page"


class QueryResult(_Envelope):
    """Payload of ``action=query``."""

    general: SiteGeneral | None = None
    namespaces: dict[str, SiteNamespace] = Field(default_factory=dict)
    statistics: SiteStatistics | None = None
    search: list[SearchHit] = Field(default_factory=list)
    searchinfo: SearchInfo | None = None
    pages: list[QueryPage] = Field(default_factory=list)
    backlinks: list[TitleRef] = Field(default_factory=list)
    categorymembers: list[CategoryMemberRecord] = Field(default_factory=list)

    @field_validator("pages", mode="before")
    @classmethod
    def _pages_as_list(cls, value: Any) -> Any:
        # formatversion 1 keys pages by page id
        if isinstance(value, dict):
            return list(value.values())
        return value


class ParseResult(_Envelope):
    """Payload of ``action=parse``."""

    title: str = ""
    pageid: int | None = None
    text: str = ""
    sections: list[TocEntry] = Field(default_factory=list)
    categories: list[CategoryRef] = Field(default_factory=list)
    links: list[TitleRef] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _unwrap_content(value)


class CompareResult(_Envelope):
    """Payload of ``action=compare``."""

    fromid: int | None = None
    fromrevid: int = 0
    fromtimestamp: str | None = None
    fromuser: str = ""
    fromcomment: str = ""
    toid: int | None = None
    torevid: int = 0
    totimestamp: str | None = None
    touser: str = ""
    tocomment: str = ""
    body: str = ""

    @model_validator(mode="before")
    @classmethod
    def _legacy_body(cls, data: Any) -> Any:
        if isinstance(data, dict) and "body" not in data and CONTENT_KEY in data:
            return {**data, "body": data[CONTENT_KEY]}
        return data


class ApiErrorResult(_Envelope):
    """Payload of the ``error`` envelope."""

    code: str = "unknown"
    info: str = ""


ApiResult = QueryResult | ParseResult | CompareResult | ApiErrorResult

# Order matters: an error envelope wins over any partial success payload.
ENVELOPES: tuple[tuple[str, type[_Envelope]], ...] = (
    ("error", ApiErrorResult),
    ("parse", ParseResult),
    ("compare", CompareResult),
    ("query", QueryResult),
)


def decode_response(payload: Any) -> ApiResult:
    """Decode a JSON reply into exactly one known envelope.

    Raises:
        WikiResponseError: If the payload is not an object, an envelope is malformed, or no
            known envelope key is present.
    """
    if not isinstance(payload, dict):
        raise WikiResponseError(f"expected a JSON object, got {type(payload).__name__}")

    for key, model in ENVELOPES:
        if key not in payload:
            continue
        try:
            return model.model_validate(payload[key])  # type: ignore[return-value]
        except ValidationError as e:
            raise WikiResponseError(f"malformed {key} envelope: {e}") from e

    raise WikiResponseError(
        "response matches no known envelope (expected one of: " + ", ".join(key for key, _ in ENVELOPES) + ")"
    )
