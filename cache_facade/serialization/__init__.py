"""
Cache Facade — Serialization

JSON encoding for serialized stores and allow-listed polymorphic decoding.
"""

from .deserializer import DeserializationOutcome, TypeResolvingDeserializer
from .encoder import TYPE_KEY, VALUES_KEY, encode, to_payload, type_name_of
from .registry import TypeBinding, TypeRegistry

__all__ = [
    "DeserializationOutcome",
    "TypeResolvingDeserializer",
    "TypeBinding",
    "TypeRegistry",
    "encode",
    "to_payload",
    "type_name_of",
    "TYPE_KEY",
    "VALUES_KEY",
]
