"""Error kinds surfaced by the character ledger and dice engine.

Every error carries a stable ``key`` so callers can map it onto a reply
without inspecting the message text.
"""

from __future__ import annotations

__all__ = ["ScumBotError", "UnknownAttribute", "StorageError", "InvalidDicePool"]


class ScumBotError(Exception):
    """Base class for errors raised by the core.

    ``args[0]`` contains the error key.
    """

    key = "scum_bot_error"

    def __init__(self, key: str | None = None) -> None:
        if key is not None:
            self.key = key
        super().__init__(self.key)


class UnknownAttribute(ScumBotError):
    """Raised when a name is not one of the fixed action or attribute names."""

    key = "unknown_attribute"

    def __init__(self, name: str) -> None:
        super().__init__()
        self.name = name

    def __str__(self) -> str:
        return f"{self.key}: {self.name!r}"


class StorageError(ScumBotError):
    """Raised when the underlying database fails; the database error is ``__cause__``."""

    key = "storage_error"


class InvalidDicePool(ScumBotError):
    """Raised when a dice pool is negative or larger than the engine allows."""

    def __init__(self, key: str, dice: int) -> None:
        super().__init__(key)
        self.dice = dice
