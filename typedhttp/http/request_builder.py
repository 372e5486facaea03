"""Turns a URI template, request options and arguments into a request."""

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

import httpx

from typedhttp.http.args import HttpArg
from typedhttp.http.constants import (
    JSON_MEDIA_TYPE,
    JSON_PATCH_MEDIA_TYPE,
    MERGE_PATCH_MEDIA_TYPE,
    READ_ONLY_METHODS,
)
from typedhttp.http.query import (
    QueryString,
    append_query,
    format_uri_template,
    split_uri,
)
from typedhttp.http.request_options import HttpRequestOptions
from typedhttp.json import DEFAULT_SERIALIZER, JsonSerializer


IF_MATCH_HEADER_NAME = "If-Match"
IF_NONE_MATCH_HEADER_NAME = "If-None-Match"


class HttpPatchOption(str, Enum):
    """Content type selection for PATCH requests with inline JSON.

    - NOT_SPECIFIED: invalid for an inline JSON PATCH
    - JSON_PATCH: RFC 6902 JSON Patch document
    - MERGE_PATCH: RFC 7396 JSON Merge Patch document
    """

    NOT_SPECIFIED = "NOT_SPECIFIED"
    JSON_PATCH = "JSON_PATCH"
    MERGE_PATCH = "MERGE_PATCH"


def patch_content_type(option: HttpPatchOption) -> str:
    """Get the media type for a patch option.

    Raises:
        ValueError: If the option is NOT_SPECIFIED.
    """
    if option == HttpPatchOption.JSON_PATCH:
        return JSON_PATCH_MEDIA_TYPE
    if option == HttpPatchOption.MERGE_PATCH:
        return MERGE_PATCH_MEDIA_TYPE
    msg = "A patch option must be specified for a PATCH with JSON content"
    raise ValueError(msg)


@dataclass
class RequestDraft:
    """A request under construction, before it is bound to a transport.

    Attributes:
        method: Upper-case HTTP method.
        url: Absolute or base-relative URL including the rendered query.
        headers: Request headers.
        content: Request body bytes, if any.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    content: bytes | None = None

    @property
    def path(self) -> str:
        """The URL without its query string."""
        return split_uri(self.url)[0]

    @property
    def query(self) -> QueryString:
        """The parsed query string."""
        return QueryString.parse(split_uri(self.url)[1])

    def to_httpx(self, client: httpx.AsyncClient) -> httpx.Request:
        """Build the transport request, merging the client base URL and headers.

        Args:
            client: Transport client.

        Returns:
            The transport request.
        """
        return client.build_request(
            self.method,
            self.url,
            headers=self.headers,
            content=self.content,
        )


def build_request(
    method: str,
    uri_template: str,
    request_options: HttpRequestOptions | None = None,
    args: Sequence[HttpArg] | None = None,
    *,
    content: str | bytes | None = None,
    content_type: str | None = None,
    serializer: JsonSerializer | None = None,
) -> RequestDraft:
    """Build a request from declarative per-call intent.

    Steps, in order:
    1. Substitute ``{name}`` placeholders from the arguments.
    2. Compose the query: the template's own query text unchanged, then each
       argument in list order, then the request options (raw query string
       last). Arguments may be reused across calls.
    3. Attach explicit content, then the conditional ETag header.
    4. Run each argument's body hook in list order.

    Args:
        method: HTTP method.
        uri_template: URI template, e.g. ``/orders/{id}``.
        request_options: Per-request options.
        args: Request arguments.
        content: Explicit body; a str is UTF-8 encoded.
        content_type: Media type of the explicit body.
        serializer: JSON codec for body arguments.

    Returns:
        The request draft.

    Raises:
        ValueError: If a body argument has no value.
        TypeError: If an argument value cannot be represented in a URI.
    """
    arg_list = list(args or [])
    serializer = serializer or DEFAULT_SERIALIZER
    method = method.upper()

    for arg in arg_list:
        arg.reset()

    uri = format_uri_template(uri_template, arg_list)
    path, raw_query = split_uri(uri)
    query = QueryString()

    for arg in arg_list:
        query = arg.add_to_query_string(query)

    if request_options is not None:
        query = request_options.add_to_query_string(query)

    draft = RequestDraft(method=method, url=append_query(path, raw_query, query))

    if content is not None:
        draft.content = content.encode("utf-8") if isinstance(content, str) else content
        draft.headers["Content-Type"] = content_type or JSON_MEDIA_TYPE

    if request_options is not None and request_options.etag:
        header_name = (
            IF_NONE_MATCH_HEADER_NAME
            if method in READ_ONLY_METHODS
            else IF_MATCH_HEADER_NAME
        )
        draft.headers[header_name] = request_options.etag

    for arg in arg_list:
        arg.modify_request(draft, serializer)

    return draft
