"""
Cache Facade — Type Registry and Encoder Tests
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone

import pytest
from pydantic import BaseModel

from cache_facade.errors import SerializationError, UnknownTypeError
from cache_facade.serialization import TypeRegistry, encode, type_name_of


class Quote(BaseModel):
    quote_id: str
    amount: float


class Channel(BaseModel):
    code: str


@dataclass
class Point:
    x: int
    y: int


class TestTypeRegistry:
    def test_registers_name_and_array_form(self) -> None:
        registry = TypeRegistry.of(Quote)
        name = type_name_of(Quote)

        assert registry.resolve(name).target is Quote
        assert registry.resolve(name).is_array is False
        assert registry.resolve(name + "[]").is_array is True
        assert len(registry) == 2

    def test_unknown_name(self) -> None:
        with pytest.raises(UnknownTypeError):
            TypeRegistry.of(Quote).resolve("builtins.object")

    def test_with_models_returns_new_registry(self) -> None:
        base = TypeRegistry.of(Quote)
        extended = base.with_models(Channel)

        assert type_name_of(Channel) in extended
        assert type_name_of(Channel) not in base

    def test_explicit_name(self) -> None:
        registry = TypeRegistry().with_models(Quote, name="Legacy.Quote")
        assert registry.resolve("Legacy.Quote").target is Quote
        assert registry.resolve("Legacy.Quote[]").is_array

    def test_explicit_name_needs_single_model(self) -> None:
        with pytest.raises(ValueError):
            TypeRegistry().with_models(Quote, Channel, name="Both")

    def test_only_models_can_be_registered(self) -> None:
        with pytest.raises(TypeError):
            TypeRegistry.of(dict)  # type: ignore[arg-type]

    def test_registry_is_read_only(self) -> None:
        registry = TypeRegistry.of(Quote)
        with pytest.raises(TypeError):
            registry[type_name_of(Channel)] = registry[type_name_of(Quote)]  # type: ignore[index]


class TestEncoder:
    def test_compact_json(self) -> None:
        assert encode({"a": 1, "b": [1, 2]}) == '{"a":1,"b":[1,2]}'

    def test_non_ascii_kept(self) -> None:
        assert encode("café") == '"café"'

    def test_datetime_and_dataclass(self) -> None:
        moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        data = json.loads(encode({"at": moment, "point": Point(1, 2)}))
        assert data["at"].startswith("2024-01-02T03:04:05")
        assert data["point"] == {"x": 1, "y": 2}

    def test_nested_models_tagged(self) -> None:
        data = json.loads(encode({"quotes": [Quote(quote_id="q1", amount=1.5)]}, with_type_metadata=True))
        assert data["quotes"]["$type"] == type_name_of(Quote) + "[]"
        assert data["quotes"]["$values"][0]["$type"] == type_name_of(Quote)

    def test_empty_list_not_wrapped(self) -> None:
        assert encode([], with_type_metadata=True) == "[]"

    def test_unserializable(self) -> None:
        with pytest.raises(SerializationError):
            encode({"handle": object()})
