"""
Cache Facade — Payload Encoder

Turns values into the compact JSON stored by serialized backends.

With type metadata enabled, every pydantic model is written with a "$type"
discriminator holding its fully-qualified name, and a list of models of one
type is wrapped as {"$type": "<name>[]", "$values": [...]}. The
deserializer only honours these discriminators through a TypeRegistry.
"""

import json
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic_core import PydanticSerializationError, to_jsonable_python

from ..errors import SerializationError

TYPE_KEY = "$type"
VALUES_KEY = "$values"
ARRAY_SUFFIX = "[]"


def type_name_of(cls: type) -> str:
    """Fully-qualified discriminator for a class: module.QualName."""
    return f"{cls.__module__}.{cls.__qualname__}"


def _field_key(model: type[BaseModel], name: str) -> str:
    alias = model.model_fields[name].alias
    return alias or name


def to_payload(value: Any, with_type_metadata: bool = False) -> Any:
    """Convert a value into JSON-compatible data, embedding discriminators if asked."""
    if isinstance(value, BaseModel):
        model = type(value)
        data: dict[str, Any] = {}
        if with_type_metadata:
            data[TYPE_KEY] = type_name_of(model)
        for name in model.model_fields:
            data[_field_key(model, name)] = to_payload(getattr(value, name), with_type_metadata)
        return data

    if isinstance(value, (list, tuple, set, frozenset)):
        items = [to_payload(item, with_type_metadata) for item in value]
        if with_type_metadata and value:
            item_types = {type(item) for item in value}
            if len(item_types) == 1:
                (item_type,) = item_types
                if issubclass(item_type, BaseModel):
                    return {TYPE_KEY: type_name_of(item_type) + ARRAY_SUFFIX, VALUES_KEY: items}
        return items

    if isinstance(value, Mapping):
        return {
            str(to_jsonable_python(key)): to_payload(item, with_type_metadata)
            for key, item in value.items()
        }

    return to_jsonable_python(value)


def encode(value: Any, with_type_metadata: bool = False) -> str:
    """
    Serialize a value to a compact JSON string.

    Raises:
        SerializationError: If the value has no JSON representation
    """
    try:
        payload = to_payload(value, with_type_metadata)
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise SerializationError(
            f"Value of type {type(value).__name__} cannot be serialized: {e}",
            details={"value_type": type(value).__name__, "error": str(e)},
        ) from e
