"""Game logic: the character ledger, dice engine and command dispatch."""

from .commands import (
    AdjustIntent,
    CommandEngine,
    DiceIntent,
    ResistanceIntent,
    RollIntent,
    ShowIntent,
)
from .dice import Degree, RollOutcome
from .ledger import Ledger

__all__ = [
    "AdjustIntent",
    "CommandEngine",
    "Degree",
    "DiceIntent",
    "Ledger",
    "ResistanceIntent",
    "RollIntent",
    "RollOutcome",
    "ShowIntent",
]
