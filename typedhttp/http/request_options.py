"""Per-request options: ETag, field selection, paging and flags."""

from collections.abc import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from typedhttp.http.constants import (
    EXCLUDE_FIELDS_QUERY_STRING_NAME,
    EXCLUDE_FIELDS_QUERY_STRING_NAMES,
    INCLUDE_FIELDS_QUERY_STRING_NAME,
    INCLUDE_FIELDS_QUERY_STRING_NAMES,
    INCLUDE_INACTIVE_QUERY_STRING_NAME,
    INCLUDE_INACTIVE_QUERY_STRING_NAMES,
    INCLUDE_TEXT_QUERY_STRING_NAME,
    INCLUDE_TEXT_QUERY_STRING_NAMES,
    PAGING_COUNT_QUERY_STRING_NAME,
    PAGING_COUNT_QUERY_STRING_NAMES,
    PAGING_PAGE_QUERY_STRING_NAME,
    PAGING_PAGE_QUERY_STRING_NAMES,
    PAGING_SIZE_QUERY_STRING_NAME,
    PAGING_SKIP_QUERY_STRING_NAME,
    PAGING_SKIP_QUERY_STRING_NAMES,
    PAGING_TAKE_QUERY_STRING_NAME,
    PAGING_TAKE_QUERY_STRING_NAMES,
)
from typedhttp.http.paging import PagingArgs
from typedhttp.http.query import QueryString


_WEAK_ETAG_PREFIX = "W/"
_TRUE_VALUES = frozenset({"true", "1"})


def format_etag(etag: str | None) -> str | None:
    """Wrap an ETag in double quotes exactly once.

    Weak tags (``W/"..."``) and already-quoted tags are returned unchanged.

    Args:
        etag: Raw or quoted entity tag.

    Returns:
        The quoted tag, or None when empty.
    """
    if not etag:
        return None
    if etag.startswith(_WEAK_ETAG_PREFIX):
        return etag
    if len(etag) >= 2 and etag.startswith('"') and etag.endswith('"'):
        return etag
    return f'"{etag}"'


class HttpRequestOptions(BaseModel):
    """Options applied to a single request.

    Instances are immutable; the fluent methods return new values.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    etag: str | None = Field(default=None, description="Entity tag, always quoted")
    include_fields: tuple[str, ...] = ()
    exclude_fields: tuple[str, ...] = ()
    paging: PagingArgs | None = None
    include_text: bool = False
    include_inactive: bool = False
    url_query_string: str | None = Field(
        default=None, description="Raw query string appended last"
    )

    @field_validator("etag")
    @classmethod
    def quote_etag(cls, v: str | None) -> str | None:
        """Quote the ETag idempotently."""
        return format_etag(v)

    @field_validator("include_fields", "exclude_fields")
    @classmethod
    def check_field_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject names that cannot survive the comma-joined query value."""
        return _check_field_names(v)

    def include(self, *fields: str) -> "HttpRequestOptions":
        """Return a copy that also includes the given fields."""
        fields = _check_field_names(fields)
        return self.model_copy(
            update={"include_fields": (*self.include_fields, *fields)}
        )

    def exclude(self, *fields: str) -> "HttpRequestOptions":
        """Return a copy that also excludes the given fields."""
        fields = _check_field_names(fields)
        return self.model_copy(
            update={"exclude_fields": (*self.exclude_fields, *fields)}
        )

    def with_paging(self, paging: PagingArgs | None) -> "HttpRequestOptions":
        """Return a copy with the given paging."""
        return self.model_copy(update={"paging": paging})

    def with_etag(self, etag: str | None) -> "HttpRequestOptions":
        """Return a copy with the given ETag (quoted)."""
        return self.model_copy(update={"etag": format_etag(etag)})

    def with_query_string(self, url_query_string: str | None) -> "HttpRequestOptions":
        """Return a copy with the given raw query string."""
        return self.model_copy(update={"url_query_string": url_query_string})

    def add_to_query_string(self, query: QueryString) -> QueryString:
        """Append the option parameters to a query string.

        Order: paging, ``$count``, ``$fields``, ``$exclude``, ``$text``,
        ``$inactive``, then the raw query string.

        Args:
            query: Query string built so far.

        Returns:
            The query string with the option parameters appended.
        """
        if self.paging is not None:
            if self.paging.is_skip_take:
                query = query.add(PAGING_SKIP_QUERY_STRING_NAME, str(self.paging.skip))
                query = query.add(PAGING_TAKE_QUERY_STRING_NAME, str(self.paging.take))
            else:
                query = query.add(
                    PAGING_PAGE_QUERY_STRING_NAME, str(self.paging.page or 1)
                )
                query = query.add(PAGING_SIZE_QUERY_STRING_NAME, str(self.paging.size))

            if self.paging.is_get_count:
                query = query.add(PAGING_COUNT_QUERY_STRING_NAME, "true")

        if self.include_fields:
            query = query.add(
                INCLUDE_FIELDS_QUERY_STRING_NAME, _join_fields(self.include_fields)
            )
        if self.exclude_fields:
            query = query.add(
                EXCLUDE_FIELDS_QUERY_STRING_NAME, _join_fields(self.exclude_fields)
            )
        if self.include_text:
            query = query.add(INCLUDE_TEXT_QUERY_STRING_NAME, "true")
        if self.include_inactive:
            query = query.add(INCLUDE_INACTIVE_QUERY_STRING_NAME, "true")

        if self.url_query_string:
            raw = self.url_query_string
            if raw.startswith("&"):
                raw = raw[1:]
            query = query.extend(QueryString.parse(raw))

        return query


def _check_field_names(fields: tuple[str, ...]) -> tuple[str, ...]:
    for name in fields:
        if "," in name:
            msg = f"Field name '{name}' must not contain a comma"
            raise ValueError(msg)
    return fields


def _join_fields(fields: Iterable[str]) -> str:
    return ",".join(f for f in fields if f)


def _first_value(
    query: QueryString, names: Iterable[str], default: str | None = None
) -> str | None:
    lowered = {n.lower() for n in names}
    for name, value in query:
        if name.lower() in lowered:
            return value or default
    return None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _parse_bool(value: str | None) -> bool:
    return value is not None and value.lower() in _TRUE_VALUES


def _split_fields(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(f for f in value.split(",") if f)


def _parse_paging(query: QueryString) -> PagingArgs | None:
    skip = _parse_int(_first_value(query, PAGING_SKIP_QUERY_STRING_NAMES))
    take = _parse_int(_first_value(query, PAGING_TAKE_QUERY_STRING_NAMES))
    page = (
        None
        if skip is not None
        else _parse_int(_first_value(query, PAGING_PAGE_QUERY_STRING_NAMES))
    )
    is_get_count = _parse_bool(_first_value(query, PAGING_COUNT_QUERY_STRING_NAMES))

    if skip is None and take is None and page is None and not is_get_count:
        return None
    if take is not None and take < 0:
        take = None
    if page is not None:
        return PagingArgs.create_page_and_size(page, take, is_get_count)
    return PagingArgs.create_skip_and_take(max(skip or 0, 0), take, is_get_count)


def parse_request_options(
    query: QueryString | str | None,
    headers: Mapping[str, str] | None = None,
) -> HttpRequestOptions:
    """Read request options back from an inbound query string and headers.

    Any accepted alias is recognized, case-insensitively. The first matching
    parameter wins. ``$inactive`` present with an empty value means true.

    Args:
        query: Inbound query string (parsed or raw).
        headers: Inbound request headers; ``If-None-Match`` is preferred over
            ``If-Match`` for the ETag.

    Returns:
        The recovered request options.
    """
    if not isinstance(query, QueryString):
        query = QueryString.parse(query)

    etag: str | None = None
    if headers is not None:
        etag = headers.get("If-None-Match") or headers.get("If-Match")

    return HttpRequestOptions(
        etag=etag,
        include_fields=_split_fields(
            _first_value(query, INCLUDE_FIELDS_QUERY_STRING_NAMES)
        ),
        exclude_fields=_split_fields(
            _first_value(query, EXCLUDE_FIELDS_QUERY_STRING_NAMES)
        ),
        paging=_parse_paging(query),
        include_text=_parse_bool(_first_value(query, INCLUDE_TEXT_QUERY_STRING_NAMES)),
        include_inactive=_parse_bool(
            _first_value(query, INCLUDE_INACTIVE_QUERY_STRING_NAMES, default="true")
        ),
    )
