"""
Error kinds raised by the catalog.

Two kinds exist: bad input (InvalidArgumentError) and an operation that does
not fit the item's current state (InvalidStateError). Both derive from
CatalogError so callers can catch everything the catalog raises at once.
"""


class CatalogError(Exception):
    """Base class for catalog failures."""


class InvalidArgumentError(CatalogError, ValueError):
    """Malformed or missing input: blank names, bad durations, unknown ids."""


class ItemNotFoundError(InvalidArgumentError):
    def __init__(self, item_id: int):
        super().__init__(f"Item with ID {item_id} not found")
        self.item_id = item_id


class InvalidStateError(CatalogError, RuntimeError):
    """Operation incompatible with the item's current lending or archive state."""
