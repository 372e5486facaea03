"""Typed HTTP client layer.

This module turns declarative per-call intent into HTTP requests and
responses into typed results:
- URI template substitution and ordered query-string composition
- Per-request options (ETag, field selection, paging, flags)
- Send options with transient and known-error classification
- Result wrappers with a normalized exception taxonomy
- Header redaction and metrics for observability
"""

from typedhttp.http.args import HttpArg, HttpArgType, format_query_value
from typedhttp.http.client import TypedHttpClient
from typedhttp.http.client_options import (
    DEFAULT_OPTIONS,
    TypedHttpClientOptions,
    is_transient,
)
from typedhttp.http.config import DEFAULT_CONFIG, HttpClientConfig
from typedhttp.http.errors import (
    AuthenticationError,
    AuthorizationError,
    BusinessError,
    ConcurrencyError,
    ConflictError,
    DataConsistencyError,
    DuplicateError,
    ErrorType,
    ExtendedError,
    HttpRequestError,
    MessageItem,
    MessageType,
    NotFoundError,
    ResponseDeserializationError,
    TransientError,
    ValidationError,
    parse_messages,
    to_extended_error,
)
from typedhttp.http.metrics import HttpClientMetrics
from typedhttp.http.paging import (
    CollectionResult,
    PagingArgs,
    PagingResult,
    paging_result_from_headers,
)
from typedhttp.http.query import (
    QueryString,
    append_query,
    format_uri_template,
    split_uri,
)
from typedhttp.http.redact import (
    redact_headers,
    redact_url,
    redact_url_credentials,
)
from typedhttp.http.request_builder import (
    HttpPatchOption,
    RequestDraft,
    build_request,
    patch_content_type,
)
from typedhttp.http.request_options import (
    HttpRequestOptions,
    format_etag,
    parse_request_options,
)
from typedhttp.http.result import HttpResult, TypedHttpResult
from typedhttp.http.state_machine import SendState, SendStateError, SendStateMachine


__all__ = [
    # Client
    "TypedHttpClient",
    # Options
    "TypedHttpClientOptions",
    "DEFAULT_OPTIONS",
    "is_transient",
    "HttpRequestOptions",
    "format_etag",
    "parse_request_options",
    # Config
    "HttpClientConfig",
    "DEFAULT_CONFIG",
    # Request building
    "HttpArg",
    "HttpArgType",
    "format_query_value",
    "HttpPatchOption",
    "RequestDraft",
    "build_request",
    "patch_content_type",
    "QueryString",
    "append_query",
    "format_uri_template",
    "split_uri",
    # Paging
    "PagingArgs",
    "PagingResult",
    "CollectionResult",
    "paging_result_from_headers",
    # Results
    "HttpResult",
    "TypedHttpResult",
    # Errors
    "ErrorType",
    "ExtendedError",
    "ValidationError",
    "BusinessError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "DuplicateError",
    "DataConsistencyError",
    "ConcurrencyError",
    "TransientError",
    "HttpRequestError",
    "ResponseDeserializationError",
    "MessageItem",
    "MessageType",
    "parse_messages",
    "to_extended_error",
    # State machine
    "SendState",
    "SendStateError",
    "SendStateMachine",
    # Metrics
    "HttpClientMetrics",
    # Redaction
    "redact_headers",
    "redact_url",
    "redact_url_credentials",
]
