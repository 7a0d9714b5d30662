"""
Cache Facade — Type-Resolving Deserializer

Converts a JSON payload read from a serialized store into a typed value.

The conversion is permissive: null-valued fields are skipped, and a field
that cannot be converted (or that the target type does not declare) is
recorded as an error and left at its default rather than aborting the whole
value. With type resolution enabled, "$type" discriminators are resolved
through a TypeRegistry; an unregistered discriminator raises
UnknownTypeError, which is never collected as a field error.
"""

import functools
import inspect
import json
import logging
import types
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, Union, get_args, get_origin

from pydantic import BaseModel, TypeAdapter, ValidationError

from ..errors import DeserializationError, UnknownTypeError
from .encoder import TYPE_KEY, VALUES_KEY
from .registry import TypeRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Marks a value that could not be converted and must be left out
_SKIP = object()


@dataclass
class DeserializationOutcome(Generic[T]):
    """A possibly-partial value and the field errors met while building it, in order."""

    value: T | None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> str | None:
        return self.errors[0] if self.errors else None


@functools.lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def _join(path: str, member: str | int) -> str:
    if isinstance(member, int):
        return f"{path}[{member}]"
    return f"{path}.{member}" if path else member


def _unwrap_optional(target: Any) -> Any:
    """Optional[X] / X | None -> X; anything else unchanged."""
    if get_origin(target) in (Union, types.UnionType):
        args = [arg for arg in get_args(target) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return target


def _is_model(target: Any) -> bool:
    return inspect.isclass(target) and issubclass(target, BaseModel)


def _is_sequence(target: Any) -> bool:
    return target in (list, set, frozenset, tuple) or get_origin(target) in (list, set, frozenset, tuple)


def _type_label(target: Any) -> str:
    return target.__name__ if inspect.isclass(target) else str(target)


class TypeResolvingDeserializer:
    """
    Permissive JSON -> typed value conversion.

    Example:
        deserializer = TypeResolvingDeserializer(TypeRegistry.of(Customer, Reseller))
        outcome = deserializer.deserialize(payload, list[Customer], with_type=True)
        if outcome.errors:
            logger.warning(outcome.first_error)
    """

    def __init__(self, registry: TypeRegistry | None = None):
        self.registry = registry or TypeRegistry()

    def deserialize(
        self,
        payload: str | bytes,
        target: Any = Any,
        with_type: bool = False,
    ) -> DeserializationOutcome[Any]:
        """
        Deserialize a JSON payload into target.

        Args:
            payload: JSON text from the store
            target: Type to build (pydantic model, generic container, scalar or Any)
            with_type: Resolve "$type" discriminators through the registry

        Returns:
            DeserializationOutcome; value is None when nothing could be built

        Raises:
            UnknownTypeError: If with_type is set and a discriminator is not registered
        """
        errors: list[str] = []

        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")

        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            errors.append(f"Payload is not valid JSON: {e}")
            return DeserializationOutcome(None, errors)

        value = self._convert(data, target, "", errors, with_type)
        if value is _SKIP:
            value = None

        return DeserializationOutcome(value, errors)

    def deserialize_or_raise(
        self,
        payload: str | bytes,
        target: Any = Any,
        with_type: bool = False,
    ) -> DeserializationOutcome[Any]:
        """
        Like deserialize(), but raise when no value could be built at all.

        A partial value still comes back as an outcome carrying its field errors.

        Raises:
            DeserializationError: If the top-level value could not be constructed
            UnknownTypeError: If a discriminator is not registered
        """
        outcome = self.deserialize(payload, target, with_type)
        if outcome.value is None and outcome.errors:
            raise DeserializationError(f"Could not deserialize cached value: {outcome.first_error}", outcome.errors)
        if outcome.errors:
            logger.debug(
                f"Deserialized with {len(outcome.errors)} field error(s): {outcome.first_error}",
                extra={"errors": outcome.errors},
            )
        return outcome

    # ------------ Conversion ------------

    def _convert(self, data: Any, target: Any, path: str, errors: list[str], with_type: bool) -> Any:
        if data is None:
            return None

        if isinstance(data, dict) and TYPE_KEY in data:
            if with_type:
                return self._convert_typed(data, target, path, errors)
            # Discriminators are ignored when type resolution is off
            if VALUES_KEY in data:
                data = data[VALUES_KEY]
            else:
                data = {k: v for k, v in data.items() if k != TYPE_KEY}

        target = _unwrap_optional(target)

        if target is Any or target is object:
            return self._plain(data, path, errors, with_type)

        if _is_model(target):
            if not isinstance(data, dict):
                errors.append(
                    f"Error converting value at '{path or '$'}': expected an object for {target.__name__}, "
                    f"got {type(data).__name__}"
                )
                return _SKIP
            return self._convert_model(data, target, path, errors, with_type)

        origin = get_origin(target)
        args = get_args(target)

        if origin in (list, set, frozenset) and isinstance(data, list):
            item_type = args[0] if args else Any
            items = self._convert_items(data, item_type, path, errors, with_type)
            return items if origin is list else origin(items)

        if origin is tuple and len(args) == 2 and args[1] is Ellipsis and isinstance(data, list):
            return tuple(self._convert_items(data, args[0], path, errors, with_type))

        if origin is dict and isinstance(data, dict):
            key_type, value_type = args if args else (Any, Any)
            result = {}
            for key, item in data.items():
                converted_key = self._validate(key, key_type, _join(path, key), errors)
                if converted_key is _SKIP:
                    continue
                converted = self._convert(item, value_type, _join(path, key), errors, with_type)
                if converted is not _SKIP:
                    result[converted_key] = converted
            return result

        return self._validate(data, target, path, errors)

    def _convert_typed(self, data: dict[str, Any], target: Any, path: str, errors: list[str]) -> Any:
        type_name = data[TYPE_KEY]
        if not isinstance(type_name, str):
            raise UnknownTypeError(repr(type_name))

        binding = self.registry.resolve(type_name)

        expected = _unwrap_optional(target)
        if expected is not Any and expected is not object and binding.is_array != _is_sequence(expected):
            shape = "an array" if binding.is_array else "a single object"
            errors.append(
                f"Type '{type_name}' at '{path or '$'}' is {shape}, not compatible with {_type_label(expected)}"
            )
            return _SKIP

        if binding.is_array:
            item_target = get_args(expected)[0] if get_args(expected) else Any
        else:
            item_target = expected
        if _is_model(item_target) and not issubclass(binding.target, item_target):
            errors.append(
                f"Type '{type_name}' at '{path or '$'}' is not compatible with {item_target.__name__}"
            )
            return _SKIP

        if binding.is_array:
            raw_items = data.get(VALUES_KEY)
            if not isinstance(raw_items, list):
                errors.append(f"Error converting value at '{path or '$'}': '{VALUES_KEY}' must be a list")
                return _SKIP
            items = self._convert_items(raw_items, binding.target, path, errors, True)
            origin = get_origin(expected)
            return origin(items) if origin in (set, frozenset, tuple) else items

        return self._convert_model(data, binding.target, path, errors, True)

    def _convert_items(self, data: list[Any], item_type: Any, path: str, errors: list[str], with_type: bool) -> list[Any]:
        items = []
        for index, item in enumerate(data):
            converted = self._convert(item, item_type, _join(path, index), errors, with_type)
            if converted is not _SKIP:
                items.append(converted)
        return items

    def _convert_model(
        self,
        data: dict[str, Any],
        model: type[BaseModel],
        path: str,
        errors: list[str],
        with_type: bool,
    ) -> Any:
        members: dict[str, str] = {}
        for name, info in model.model_fields.items():
            members[name] = name
            if info.alias:
                members[info.alias] = name

        values: dict[str, Any] = {}
        for member, raw in data.items():
            if member == TYPE_KEY:
                continue

            name = members.get(member)
            if name is None:
                errors.append(
                    f"Could not find member '{member}' on object of type '{model.__name__}'. "
                    f"Path '{_join(path, member)}'."
                )
                continue

            # Null-valued members keep the field default
            if raw is None:
                continue

            info = model.model_fields[name]
            converted = self._convert(raw, info.annotation, _join(path, member), errors, with_type)
            if converted is not _SKIP:
                values[info.alias or name] = converted

        try:
            return model.model_validate(values)
        except ValidationError as e:
            self._record(e, path, errors)
            # Partial value: converted fields plus defaults
            return model.model_construct(**values)

    def _plain(self, data: Any, path: str, errors: list[str], with_type: bool) -> Any:
        """Untyped data: nested discriminators are still honoured or stripped."""
        if isinstance(data, list):
            return self._convert_items(data, Any, path, errors, with_type)
        if isinstance(data, dict):
            result = {}
            for key, item in data.items():
                converted = self._convert(item, Any, _join(path, key), errors, with_type)
                if converted is not _SKIP:
                    result[key] = converted
            return result
        return data

    def _validate(self, data: Any, target: Any, path: str, errors: list[str]) -> Any:
        try:
            return _adapter(target).validate_python(data)
        except ValidationError as e:
            self._record(e, path, errors)
            return _SKIP

    @staticmethod
    def _record(error: ValidationError, path: str, errors: list[str]) -> None:
        for detail in error.errors():
            location = path
            for part in detail["loc"]:
                location = _join(location, part)
            errors.append(f"Error converting value at '{location or '$'}': {detail['msg']}")
