"""
Data shaping: project public representations down to requested fields.

Each shaped type gets a field registry built once from its pydantic field
declarations. Field lists are resolved against the registry case-insensitively
and the result is a plain, insertion-ordered dict that callers can extend
(for example with a ``links`` entry).
"""

from dataclasses import dataclass
from functools import lru_cache
from operator import attrgetter
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Type

from pydantic import BaseModel

from querying.exceptions import FieldNotFoundError


@dataclass(frozen=True)
class ShapeField:
    """A public field name and the attribute it is read from."""
    name: str
    attribute: str

    @property
    def getter(self) -> Callable[[Any], Any]:
        return attrgetter(self.attribute)


class FieldRegistry:
    """Ordered fields of one shaped type."""

    def __init__(self, shape_name: str, fields: Sequence[ShapeField]):
        self.shape_name = shape_name
        self.fields = tuple(fields)
        self._lookup: Dict[str, ShapeField] = {}
        for shape_field in self.fields:
            self._lookup.setdefault(shape_field.name.lower(), shape_field)
            self._lookup.setdefault(shape_field.attribute.lower(), shape_field)

    @classmethod
    def for_model(cls, model: Type[BaseModel]) -> "FieldRegistry":
        """Registry for a pydantic model, built once per class."""
        return _registry_for_model(model)

    def resolve(self, fields: Optional[str]) -> List[ShapeField]:
        """
        Resolve a comma-delimited field list.

        Args:
            fields: requested fields; blank means every field in declaration order

        Returns:
            Resolved fields in request order

        Raises:
            FieldNotFoundError: naming the first field that does not resolve
        """
        if fields is None or not fields.strip():
            return list(self.fields)

        resolved = []
        for token in fields.split(","):
            name = token.strip()
            shape_field = self._lookup.get(name.lower())
            if shape_field is None:
                raise FieldNotFoundError(name, self.shape_name)
            resolved.append(shape_field)
        return resolved

    def has_fields(self, fields: Optional[str]) -> bool:
        """True if every requested field resolves."""
        try:
            self.resolve(fields)
        except FieldNotFoundError:
            return False
        return True


def _public_name(model: Type[BaseModel], attribute: str, alias: Optional[str]) -> str:
    if alias:
        return alias
    generator = model.model_config.get("alias_generator")
    if callable(generator):
        return generator(attribute)
    return attribute


@lru_cache(maxsize=None)
def _registry_for_model(model: Type[BaseModel]) -> FieldRegistry:
    fields = [
        ShapeField(name=_public_name(model, attribute, info.alias), attribute=attribute)
        for attribute, info in model.model_fields.items()
    ]
    return FieldRegistry(model.__name__, fields)


def _project(source: Any, resolved: Sequence[ShapeField]) -> Dict[str, Any]:
    return {shape_field.name: shape_field.getter(source) for shape_field in resolved}


def shape_data(source: BaseModel, fields: Optional[str] = None) -> Dict[str, Any]:
    """Shape a single object to the requested fields."""
    if source is None:
        raise ValueError("source is required for data shaping")

    registry = FieldRegistry.for_model(type(source))
    return _project(source, registry.resolve(fields))


def shape_collection(
    source: Iterable[BaseModel],
    fields: Optional[str] = None,
    model: Optional[Type[BaseModel]] = None
) -> List[Dict[str, Any]]:
    """
    Shape every object of a collection.

    The field list is resolved once and reused for every element. ``model``
    names the shaped type so unknown fields fail even for empty collections;
    it defaults to the type of the first element.
    """
    if source is None:
        raise ValueError("source is required for data shaping")

    items = list(source)
    if model is None:
        if not items:
            return []
        model = type(items[0])

    resolved = FieldRegistry.for_model(model).resolve(fields)
    return [_project(item, resolved) for item in items]
