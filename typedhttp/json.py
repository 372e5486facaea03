"""JSON serialization boundary for request and response bodies."""

from functools import lru_cache
from typing import Any, Protocol, runtime_checkable

from pydantic import TypeAdapter


@runtime_checkable
class JsonSerializer(Protocol):
    """Protocol for the JSON codec used by the typed client.

    Any object implementing ``serialize`` and ``deserialize`` with the
    matching signatures can be passed to the client in place of the default.
    """

    def serialize(self, value: Any) -> bytes:
        """Serialize a value to UTF-8 JSON bytes."""
        ...

    def deserialize(self, data: bytes | str, value_type: Any) -> Any:
        """Deserialize JSON into an instance of ``value_type``.

        Raises:
            ValueError: If the data is not valid for the type.
        """
        ...


@lru_cache(maxsize=256)
def _adapter(value_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(value_type)


class PydanticJsonSerializer:
    """Default JSON codec built on cached pydantic ``TypeAdapter`` instances."""

    def __init__(self, *, by_alias: bool = True, exclude_none: bool = False) -> None:
        """Initialize the serializer.

        Args:
            by_alias: Emit field aliases when dumping models.
            exclude_none: Drop None-valued fields when dumping models.
        """
        self._by_alias = by_alias
        self._exclude_none = exclude_none

    def serialize(self, value: Any) -> bytes:
        """Serialize a value to UTF-8 JSON bytes."""
        adapter = _adapter(type(value))
        return adapter.dump_json(
            value, by_alias=self._by_alias, exclude_none=self._exclude_none
        )

    def deserialize(self, data: bytes | str, value_type: Any) -> Any:
        """Deserialize JSON into an instance of ``value_type``."""
        return _adapter(value_type).validate_json(data)


DEFAULT_SERIALIZER = PydanticJsonSerializer()
