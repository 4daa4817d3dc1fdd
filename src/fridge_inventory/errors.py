"""Exception types shared by services and adapters."""


class FridgeInventoryError(Exception):
    """Base class for errors raised by the inventory core."""


class InvalidInputError(FridgeInventoryError):
    """Raised when a request fails validation before any write happens."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__(", ".join(self.messages))


class TransientStoreError(FridgeInventoryError):
    """Store conflict that may succeed on retry (unique violation, deadlock)."""


class PersistenceError(FridgeInventoryError):
    """A write failed and the enclosing transaction was rolled back."""


class DuplicateIngredientError(FridgeInventoryError):
    """A catalog entry with the same normalized name already exists."""


class NotFoundError(FridgeInventoryError):
    """The requested row does not exist."""


class VersionConflictError(FridgeInventoryError):
    """The row was modified since the caller last read it."""
