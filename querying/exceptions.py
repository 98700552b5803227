"""
Exceptions raised by the query shaping pipeline.
"""


class QueryError(Exception):
    """Base class for query shaping errors."""


class PropertyMappingNotFoundError(QueryError, LookupError):
    """No property mapping is registered for a source/destination pair."""

    def __init__(self, source: type, destination: type):
        self.source = source
        self.destination = destination
        super().__init__(
            f"Cannot find property mapping for <{source.__name__}, {destination.__name__}>"
        )


class InvalidSortKeyError(QueryError, ValueError):
    """An order-by clause names a key the mapping does not know."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key mapping for {key} is missing")


class FieldNotFoundError(QueryError, LookupError):
    """A requested field does not exist on the shaped type."""

    def __init__(self, field: str, shape_name: str):
        self.field = field
        self.shape_name = shape_name
        super().__init__(f"Property {field} wasn't found on {shape_name}")
