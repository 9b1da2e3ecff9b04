"""
JSON serialization for request bodies and typed response bodies.

Serialization goes through json.dumps with the shared ``json_serializer``
hook. Deserialization validates JSON text into the requested type with a
pydantic TypeAdapter, so the target can be a pydantic model, dataclass,
TypedDict, builtin container or scalar.
"""

import json
import types
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, TypeVar, Union, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError

from apiadapter.errors.exceptions import DeserializationError, InvalidUsageError
from apiadapter.utils.json_serializers import json_serializer

T = TypeVar("T")


@dataclass(frozen=True)
class SerializerSettings:
    """Options for encoding request bodies."""

    sort_keys: bool = False
    indent: int | None = None
    ensure_ascii: bool = False
    by_alias: bool = True
    exclude_none: bool = False
    default: Callable[[Any], Any] = field(default=json_serializer)


@dataclass(frozen=True)
class DeserializerSettings:
    """Options for decoding response bodies."""

    # Reject type coercion (e.g. "1" -> 1)
    strict: bool = False


DEFAULT_SERIALIZER_SETTINGS = SerializerSettings()
DEFAULT_DESERIALIZER_SETTINGS = DeserializerSettings()


@lru_cache(maxsize=256)
def _type_adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


class JsonSerializer:
    """Serializer/deserializer pair used by adapters."""

    def serialize(self, obj: Any, settings: SerializerSettings | None = None) -> str:
        settings = settings or DEFAULT_SERIALIZER_SETTINGS
        if isinstance(obj, BaseModel):
            obj = obj.model_dump(
                mode="json",
                by_alias=settings.by_alias,
                exclude_none=settings.exclude_none,
            )
        return json.dumps(
            obj,
            default=settings.default,
            sort_keys=settings.sort_keys,
            indent=settings.indent,
            ensure_ascii=settings.ensure_ascii,
        )

    def deserialize(
        self,
        text: str,
        result_type: type[T],
        settings: DeserializerSettings | None = None,
    ) -> T:
        """
        Parse JSON text into ``result_type``.

        Raises:
            DeserializationError: Body is not valid JSON for the type
            InvalidUsageError: The type cannot be validated by pydantic
        """
        settings = settings or DEFAULT_DESERIALIZER_SETTINGS
        try:
            adapter = _type_adapter(result_type)
        except (PydanticSchemaGenerationError, TypeError) as e:
            raise InvalidUsageError(
                f"Cannot deserialize into {_type_name(result_type)}", cause=e
            ) from e

        try:
            return adapter.validate_json(text, strict=settings.strict)
        except ValidationError as e:
            raise DeserializationError(
                f"Response body is not a valid {_type_name(result_type)}",
                body=text,
                result_type=result_type,
                cause=e,
            ) from e


def encode_body(
    body: Any,
    serializer: JsonSerializer,
    settings: SerializerSettings | None,
    content_type: str,
    encoding: str | None = None,
) -> tuple[bytes, str]:
    """
    Encode a request body.

    Strings are sent verbatim (assumed pre-serialized) and bytes as-is;
    anything else is serialized. The charset parameter is only added to the
    Content-Type when an encoding is configured.

    Returns:
        (payload bytes, Content-Type header value)

    Raises:
        InvalidUsageError: The body cannot be serialized or encoded
    """
    header_value = f"{content_type}; charset={encoding}" if encoding else content_type

    if isinstance(body, bytes):
        return body, header_value

    try:
        text = body if isinstance(body, str) else serializer.serialize(body, settings)
        return text.encode(encoding or "utf-8"), header_value
    except (TypeError, ValueError, LookupError) as e:
        raise InvalidUsageError(
            f"Cannot serialize request body of type {type(body).__name__}", cause=e
        ) from e


def default_instance(result_type: Any) -> Any:
    """
    Zero value for an empty success body.

    Raises:
        DeserializationError: The type has no argument-free constructor
    """
    if result_type is Any or result_type is None or result_type is type(None):
        return None

    origin = get_origin(result_type) or result_type
    if origin is Union or origin is types.UnionType:
        return None

    try:
        return origin()
    except (TypeError, ValidationError) as e:
        if isinstance(origin, type) and issubclass(origin, BaseModel):
            return origin.model_construct()
        raise DeserializationError(
            f"Empty response body cannot produce a {_type_name(result_type)}",
            result_type=result_type,
            cause=e,
        ) from e


def _type_name(result_type: Any) -> str:
    return getattr(result_type, "__name__", repr(result_type))


__all__ = [
    "DEFAULT_DESERIALIZER_SETTINGS",
    "DEFAULT_SERIALIZER_SETTINGS",
    "DeserializerSettings",
    "JsonSerializer",
    "SerializerSettings",
    "default_instance",
    "encode_body",
]
