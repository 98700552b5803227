"""
Property mappings from public sort keys to storage fields.

A public key such as ``Name`` can expand to several storage fields
(``first_name``, ``last_name``) and can invert the requested direction
(``Age`` ascending is ``date_of_birth`` descending).
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

from querying.exceptions import PropertyMappingNotFoundError


@dataclass(frozen=True)
class PropertyMappingValue:
    """Storage fields for one public key."""
    destination_properties: Sequence[str]
    revert: bool = False

    def __post_init__(self):
        object.__setattr__(self, "destination_properties", tuple(self.destination_properties))


class PropertyMapping(Mapping[str, PropertyMappingValue]):
    """Read-only, case-insensitive table of public key -> PropertyMappingValue."""

    def __init__(self, mapping: Mapping[str, PropertyMappingValue]):
        self._names = {key.lower(): key for key in mapping}
        self._values = {key.lower(): value for key, value in mapping.items()}

    def __getitem__(self, key: str) -> PropertyMappingValue:
        return self._values[key.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._values)


def clause_key(clause: str) -> str:
    """Return the key part of an order-by clause ("Name desc" -> "Name")."""
    clause = clause.strip()
    index = clause.find(" ")
    return clause if index == -1 else clause[:index]


class PropertyMappingService:
    """
    Registry of property mappings keyed by (source type, destination type).

    Mappings are registered once at start-up and only read afterwards.
    """

    def __init__(self, mappings: Optional[Dict[Tuple[type, type], Mapping[str, PropertyMappingValue]]] = None):
        self._mappings: Dict[Tuple[type, type], PropertyMapping] = {}
        for (source, destination), mapping in (mappings or {}).items():
            self.register(source, destination, mapping)

    def register(
        self,
        source: type,
        destination: type,
        mapping: Mapping[str, PropertyMappingValue]
    ) -> None:
        """Register the mapping used to sort ``destination`` by keys of ``source``."""
        self._mappings[(source, destination)] = PropertyMapping(mapping)

    def get_property_mapping(self, source: type, destination: type) -> PropertyMapping:
        """
        Get the mapping for a source/destination pair.

        Raises:
            PropertyMappingNotFoundError: if nothing is registered for the pair
        """
        try:
            return self._mappings[(source, destination)]
        except KeyError:
            raise PropertyMappingNotFoundError(source, destination) from None

    def valid_mapping_exists_for(self, source: type, destination: type, fields: Optional[str]) -> bool:
        """
        Check that every clause of a comma-delimited order-by expression maps
        to a known key. Direction tokens are ignored; blank input is valid.
        """
        if fields is None or not fields.strip():
            return True

        mapping = self.get_property_mapping(source, destination)
        for clause in fields.split(","):
            if clause_key(clause) not in mapping:
                return False
        return True
