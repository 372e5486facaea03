"""Request arguments: typed contributors to the URI, query string and body."""

import dataclasses
from collections.abc import Iterable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import quote
from uuid import UUID

import structlog
from pydantic import BaseModel

from typedhttp.http.constants import JSON_MEDIA_TYPE
from typedhttp.http.query import QueryString
from typedhttp.json import JsonSerializer


if TYPE_CHECKING:
    from typedhttp.http.request_builder import RequestDraft


logger = structlog.get_logger()


class HttpArgType(str, Enum):
    """How an argument is applied to the outgoing request.

    - FROM_URI: substituted into a matching ``{name}`` placeholder, otherwise
      added to the query string as a scalar (or one param per item)
    - FROM_URI_USE_PROPERTIES: each property added as its own query param
    - FROM_URI_USE_PROPERTIES_AND_PREFIX: as above, named ``{arg}.{property}``
    - FROM_BODY: serialized as the JSON request body
    """

    FROM_URI = "FROM_URI"
    FROM_URI_USE_PROPERTIES = "FROM_URI_USE_PROPERTIES"
    FROM_URI_USE_PROPERTIES_AND_PREFIX = "FROM_URI_USE_PROPERTIES_AND_PREFIX"
    FROM_BODY = "FROM_BODY"


_PROPERTY_ARG_TYPES = frozenset(
    {
        HttpArgType.FROM_URI_USE_PROPERTIES,
        HttpArgType.FROM_URI_USE_PROPERTIES_AND_PREFIX,
    }
)


def format_query_value(value: Any) -> str | None:
    """Format a scalar for use in a URI.

    Args:
        value: Candidate scalar.

    Returns:
        The invariant string form, or None when the value is not a scalar.
    """
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime | date | time):
        return value.isoformat()
    if isinstance(value, int | float | Decimal | UUID):
        return str(value)
    return None


def _is_iterable_collection(value: Any) -> bool:
    return isinstance(value, Iterable) and not isinstance(
        value, str | bytes | bytearray | Mapping
    )


def _properties_of(value: Any) -> list[tuple[str, Any]]:
    """Get (name, value) pairs for a complex value in declaration order."""
    if isinstance(value, BaseModel):
        return list(value.model_dump(by_alias=True).items())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return [(f.name, getattr(value, f.name)) for f in dataclasses.fields(value)]
    if isinstance(value, Mapping):
        return [(str(k), v) for k, v in value.items()]
    return [(k, v) for k, v in vars(value).items() if not k.startswith("_")]


class HttpArg:
    """A named request argument.

    Attributes:
        name: Argument name; matches ``{name}`` placeholders case-sensitively.
        value: Argument value.
        arg_type: How the argument is applied.
    """

    def __init__(
        self,
        name: str,
        value: Any,
        arg_type: HttpArgType = HttpArgType.FROM_URI,
    ) -> None:
        """Initialize the argument.

        Args:
            name: Argument name.
            value: Argument value.
            arg_type: How the argument is applied.

        Raises:
            ValueError: If the name is empty.
        """
        if not name:
            msg = "An argument name must be provided"
            raise ValueError(msg)
        self.name = name
        self.value = value
        self.arg_type = arg_type
        self._used = arg_type == HttpArgType.FROM_BODY

    @property
    def used(self) -> bool:
        """Whether the argument has already been consumed (template or body)."""
        return self._used

    @property
    def is_default(self) -> bool:
        """Whether the value is its type's default and never sent in the query.

        None, False and numeric zero are defaults; empty strings are sent.
        """
        value = self.value
        if value is None or value is False:
            return True
        return isinstance(value, (int, float, Decimal)) and value == 0

    def reset(self) -> None:
        """Clear template usage so the argument can be applied to a new request."""
        self._used = self.arg_type == HttpArgType.FROM_BODY

    def to_escaped_string(self) -> str | None:
        """Get the percent-escaped value for URI template substitution.

        Only FROM_URI arguments are template-eligible. A successful call marks
        the argument used so it is not repeated in the query string.

        Returns:
            The escaped value, or None when not substitutable.
        """
        if self.arg_type != HttpArgType.FROM_URI or self.value is None:
            return None

        text = format_query_value(self.value)
        if text is None:
            text = str(self.value)
        self._used = True
        return quote(text, safe="")

    def add_to_query_string(self, query: QueryString) -> QueryString:
        """Append this argument's parameters to a query string.

        Args:
            query: Query string built so far.

        Returns:
            The query string with this argument's parameters appended.

        Raises:
            TypeError: If a value cannot be represented in a URI.
        """
        if self._used or self.arg_type == HttpArgType.FROM_BODY or self.is_default:
            return query

        text = format_query_value(self.value)
        if text is not None:
            return query.add(self.name, text)

        if _is_iterable_collection(self.value):
            for item in self.value:
                if item is None:
                    continue
                item_text = format_query_value(item)
                if item_text is not None:
                    query = query.add(self.name, item_text)
                elif self.arg_type in _PROPERTY_ARG_TYPES:
                    query = self._add_properties(query, item)
                else:
                    raise self._not_uri_serializable(item)
            return query

        if self.arg_type in _PROPERTY_ARG_TYPES:
            return self._add_properties(query, self.value)

        raise self._not_uri_serializable(self.value)

    def _add_properties(self, query: QueryString, value: Any) -> QueryString:
        prefix = (
            f"{self.name}."
            if self.arg_type == HttpArgType.FROM_URI_USE_PROPERTIES_AND_PREFIX
            else ""
        )
        for prop_name, prop_value in _properties_of(value):
            if prop_value is None:
                continue
            name = f"{prefix}{prop_name}"
            items = (
                list(prop_value)
                if _is_iterable_collection(prop_value)
                else [prop_value]
            )
            for item in items:
                if item is None:
                    continue
                text = format_query_value(item)
                if text is None:
                    raise self._not_uri_serializable(value)
                query = query.add(name, text)
        return query

    def _not_uri_serializable(self, value: Any) -> TypeError:
        msg = (
            f"Argument '{self.name}' of type '{type(value).__name__}' cannot be "
            "serialized to a URI; pass it in the request body (FROM_BODY)"
        )
        return TypeError(msg)

    def modify_request(self, draft: "RequestDraft", serializer: JsonSerializer) -> None:
        """Attach this argument as the JSON body when it is body-kind.

        Args:
            draft: Request under construction.
            serializer: JSON codec for the body.

        Raises:
            ValueError: If a body-kind argument has no value.
        """
        if self.arg_type != HttpArgType.FROM_BODY:
            return

        if self.value is None:
            msg = f"Body argument '{self.name}' requires a value"
            raise ValueError(msg)

        if draft.content is not None:
            logger.debug(
                "body_arg_ignored",
                component="http",
                arg=self.name,
                reason="content_already_set",
            )
            return

        draft.content = serializer.serialize(self.value)
        draft.headers["Content-Type"] = JSON_MEDIA_TYPE

    def __repr__(self) -> str:
        return (
            f"HttpArg(name={self.name!r}, value={self.value!r}, "
            f"arg_type={self.arg_type.name})"
        )
