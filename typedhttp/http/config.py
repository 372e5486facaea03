"""Configuration model for the typed HTTP client."""

from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from typedhttp.http.constants import (
    CORRELATION_ID_HEADER_NAME,
    DEFAULT_MAX_ERROR_BODY_CHARS,
    ERROR_CODE_HEADER_NAME,
    ERROR_TYPE_HEADER_NAME,
    MESSAGES_HEADER_NAME,
    PAGING_PAGE_NUMBER_HEADER_NAME,
    PAGING_PAGE_SIZE_HEADER_NAME,
    PAGING_SKIP_HEADER_NAME,
    PAGING_TAKE_HEADER_NAME,
    PAGING_TOTAL_COUNT_HEADER_NAME,
)


if TYPE_CHECKING:
    from typedhttp.settings.app import HttpClientSettings


class HttpClientConfig(BaseModel):
    """Configuration for the typed HTTP client.

    Holds the wire-level header names shared by the send pipeline and the
    result wrapper, plus transport defaults.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = "typedhttp/1.0"
    timeout_seconds: Annotated[float, Field(ge=1.0, le=300.0)] = 30.0
    max_error_body_chars: Annotated[int, Field(ge=0, le=100_000)] = (
        DEFAULT_MAX_ERROR_BODY_CHARS
    )
    correlation_header_names: tuple[str, ...] = Field(
        default=(CORRELATION_ID_HEADER_NAME,),
        description="Outbound headers that carry the correlation id",
    )
    error_type_header_name: str = ERROR_TYPE_HEADER_NAME
    error_code_header_name: str = ERROR_CODE_HEADER_NAME
    messages_header_name: str = MESSAGES_HEADER_NAME
    paging_page_number_header_name: str = PAGING_PAGE_NUMBER_HEADER_NAME
    paging_page_size_header_name: str = PAGING_PAGE_SIZE_HEADER_NAME
    paging_skip_header_name: str = PAGING_SKIP_HEADER_NAME
    paging_take_header_name: str = PAGING_TAKE_HEADER_NAME
    paging_total_count_header_name: str = PAGING_TOTAL_COUNT_HEADER_NAME

    @field_validator("correlation_header_names")
    @classmethod
    def validate_header_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Ensure correlation header names are non-blank and distinct."""
        seen: set[str] = set()
        for name in v:
            if not name.strip():
                msg = "Correlation header names must not be blank"
                raise ValueError(msg)
            if name.lower() in seen:
                msg = f"Duplicate correlation header name: {name}"
                raise ValueError(msg)
            seen.add(name.lower())
        return v

    @classmethod
    def from_settings(cls, settings: "HttpClientSettings") -> "HttpClientConfig":
        """Build the configuration from environment settings.

        Args:
            settings: Loaded environment settings.

        Returns:
            HttpClientConfig reflecting the settings.
        """
        return cls(
            user_agent=settings.user_agent,
            timeout_seconds=settings.timeout_seconds,
            correlation_header_names=tuple(settings.correlation_header_names),
        )


DEFAULT_CONFIG = HttpClientConfig()
