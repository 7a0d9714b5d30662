"""
Cache Facade — Type Registry

The allow-list consulted during polymorphic deserialization. Only types
registered here can be instantiated from a "$type" discriminator found in a
cached payload; any other discriminator is rejected with UnknownTypeError.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from pydantic import BaseModel

from ..errors import UnknownTypeError
from .encoder import ARRAY_SUFFIX, type_name_of


@dataclass(frozen=True)
class TypeBinding:
    """A registered discriminator: the model it builds, and whether it names a list of them."""

    target: type[BaseModel]
    is_array: bool = False


class TypeRegistry(Mapping[str, TypeBinding]):
    """
    Immutable discriminator -> TypeBinding mapping.

    Registering a model binds both its own name and the "<name>[]" array
    form. Build one at startup and share it; use with_models() to derive an
    extended registry.
    """

    def __init__(self, bindings: Mapping[str, TypeBinding] | None = None):
        self._bindings: Mapping[str, TypeBinding] = MappingProxyType(dict(bindings or {}))

    @classmethod
    def of(cls, *models: type[BaseModel]) -> "TypeRegistry":
        """Build a registry allowing the given models under their fully-qualified names."""
        return cls().with_models(*models)

    def with_models(self, *models: type[BaseModel], name: str | None = None) -> "TypeRegistry":
        """
        Return a new registry that also allows the given models.

        Args:
            models: pydantic model classes to allow
            name: Explicit discriminator (only valid with a single model)
        """
        if name is not None and len(models) != 1:
            raise ValueError("An explicit discriminator name can only be given for a single model")

        bindings = dict(self._bindings)
        for model in models:
            if not (isinstance(model, type) and issubclass(model, BaseModel)):
                raise TypeError(f"Only pydantic models can be registered, got {model!r}")
            type_name = name or type_name_of(model)
            bindings[type_name] = TypeBinding(model)
            bindings[type_name + ARRAY_SUFFIX] = TypeBinding(model, is_array=True)
        return TypeRegistry(bindings)

    def resolve(self, type_name: str) -> TypeBinding:
        """
        Look up a discriminator.

        Raises:
            UnknownTypeError: If the discriminator is not allowed
        """
        binding = self._bindings.get(type_name)
        if binding is None:
            raise UnknownTypeError(type_name)
        return binding

    def __getitem__(self, type_name: str) -> TypeBinding:
        return self._bindings[type_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"TypeRegistry({sorted(self._bindings)!r})"
