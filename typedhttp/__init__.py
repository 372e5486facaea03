"""typedhttp: a typed HTTP client pipeline on httpx and pydantic."""

from typedhttp.http import (
    HttpArg,
    HttpArgType,
    HttpPatchOption,
    HttpRequestOptions,
    HttpResult,
    TypedHttpClient,
    TypedHttpClientOptions,
    TypedHttpResult,
)
from typedhttp.json import DEFAULT_SERIALIZER, JsonSerializer, PydanticJsonSerializer
from typedhttp.results import Result


__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SERIALIZER",
    "HttpArg",
    "HttpArgType",
    "HttpPatchOption",
    "HttpRequestOptions",
    "HttpResult",
    "JsonSerializer",
    "PydanticJsonSerializer",
    "Result",
    "TypedHttpClient",
    "TypedHttpClientOptions",
    "TypedHttpResult",
    "__version__",
]
