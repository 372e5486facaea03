"""HTTP constants for the typed client layer.

Centralizes header names, query-string names and media types so the request
builder, the send pipeline and the result wrapper agree on the wire format.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK = 200
HTTP_STATUS_CREATED = 201
HTTP_STATUS_ACCEPTED = 202
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_NO_CONTENT = 204
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_FORBIDDEN = 403
HTTP_STATUS_NOT_FOUND = 404
HTTP_STATUS_REQUEST_TIMEOUT = 408
HTTP_STATUS_CONFLICT = 409
HTTP_STATUS_PRECONDITION_FAILED = 412
HTTP_STATUS_TOO_MANY_REQUESTS = 429
HTTP_STATUS_INTERNAL_SERVER_ERROR = 500
HTTP_STATUS_SERVICE_UNAVAILABLE = 503
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Read-only methods use If-None-Match; everything else uses If-Match
READ_ONLY_METHODS = frozenset({"GET", "HEAD"})

# Response header names
ERROR_TYPE_HEADER_NAME = "x-error-type"
ERROR_CODE_HEADER_NAME = "x-error-code"
MESSAGES_HEADER_NAME = "x-messages"
CORRELATION_ID_HEADER_NAME = "x-correlation-id"
PAGING_PAGE_NUMBER_HEADER_NAME = "x-paging-page-number"
PAGING_PAGE_SIZE_HEADER_NAME = "x-paging-page-size"
PAGING_SKIP_HEADER_NAME = "x-paging-skip"
PAGING_TAKE_HEADER_NAME = "x-paging-take"
PAGING_TOTAL_COUNT_HEADER_NAME = "x-paging-total-count"

# Outbound query-string names
INCLUDE_FIELDS_QUERY_STRING_NAME = "$fields"
EXCLUDE_FIELDS_QUERY_STRING_NAME = "$exclude"
PAGING_PAGE_QUERY_STRING_NAME = "$page"
PAGING_SIZE_QUERY_STRING_NAME = "$size"
PAGING_SKIP_QUERY_STRING_NAME = "$skip"
PAGING_TAKE_QUERY_STRING_NAME = "$take"
PAGING_COUNT_QUERY_STRING_NAME = "$count"
INCLUDE_TEXT_QUERY_STRING_NAME = "$text"
INCLUDE_INACTIVE_QUERY_STRING_NAME = "$inactive"

# Inbound query-string aliases (matched case-insensitively)
PAGING_PAGE_QUERY_STRING_NAMES = ("$page", "$pageNumber", "paging-page")
PAGING_SKIP_QUERY_STRING_NAMES = ("$skip", "$offset", "paging-skip")
PAGING_TAKE_QUERY_STRING_NAMES = (
    "$take",
    "$top",
    "$size",
    "$pageSize",
    "$limit",
    "paging-take",
    "paging-size",
)
PAGING_COUNT_QUERY_STRING_NAMES = ("$count", "$totalCount", "paging-count")
INCLUDE_FIELDS_QUERY_STRING_NAMES = (
    "$fields",
    "$includeFields",
    "$include",
    "include-fields",
)
EXCLUDE_FIELDS_QUERY_STRING_NAMES = ("$excludeFields", "$exclude", "exclude-fields")
INCLUDE_TEXT_QUERY_STRING_NAMES = ("$text", "$includeText", "include-text")
INCLUDE_INACTIVE_QUERY_STRING_NAMES = (
    "$inactive",
    "$includeInactive",
    "include-inactive",
)

# Media types
JSON_MEDIA_TYPE = "application/json"
TEXT_PLAIN_MEDIA_TYPE = "text/plain"
JSON_PATCH_MEDIA_TYPE = "application/json-patch+json"
MERGE_PATCH_MEDIA_TYPE = "application/merge-patch+json"

# Paging defaults
DEFAULT_PAGING_TAKE = 100

# Maximum characters of a response body carried on a generic request error
DEFAULT_MAX_ERROR_BODY_CHARS = 500
