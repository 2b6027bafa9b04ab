from typing import Dict, Final, Literal, Tuple

from pydantic import BaseModel, field_validator

ActionName = Literal[
    "attune",
    "command",
    "consort",
    "doctor",
    "hack",
    "helm",
    "rig",
    "scramble",
    "scrap",
    "skulk",
    "study",
    "sway",
]
AttributeName = Literal["insight", "prowess", "resolve"]

ACTION_NAMES: Final[Tuple[str, ...]] = (
    "attune",
    "command",
    "consort",
    "doctor",
    "hack",
    "helm",
    "rig",
    "scramble",
    "scrap",
    "skulk",
    "study",
    "sway",
)

ATTRIBUTE_ACTIONS: Final[Dict[str, Tuple[str, ...]]] = {
    "insight": ("doctor", "hack", "rig", "study"),
    "prowess": ("helm", "scramble", "scrap", "skulk"),
    "resolve": ("attune", "command", "consort", "sway"),
}

# Genre-standard action rating range. Everything that bounds a rating reads these.
MIN_ACTION_RATING: Final[int] = 0
MAX_ACTION_RATING: Final[int] = 4


def clamp_rating(value: int) -> int:
    """Clamp *value* into the action rating range."""
    return max(MIN_ACTION_RATING, min(MAX_ACTION_RATING, value))


class CharacterRecord(BaseModel):
    """A character's action ratings in one channel."""

    channel_id: str
    user_id: str
    attune: int = 0
    command: int = 0
    consort: int = 0
    doctor: int = 0
    hack: int = 0
    helm: int = 0
    rig: int = 0
    scramble: int = 0
    scrap: int = 0
    skulk: int = 0
    study: int = 0
    sway: int = 0

    @field_validator(*ACTION_NAMES)
    @classmethod
    def rating_must_be_in_range(cls, v: int) -> int:
        if not MIN_ACTION_RATING <= v <= MAX_ACTION_RATING:
            raise ValueError(
                f"Action rating must be between {MIN_ACTION_RATING} and {MAX_ACTION_RATING}"
            )
        return v

    @property
    def key(self) -> Tuple[str, str]:
        return (self.channel_id, self.user_id)

    @property
    def ratings(self) -> Dict[str, int]:
        """All twelve action ratings in schema order."""
        return {name: getattr(self, name) for name in ACTION_NAMES}

    def rating(self, action: str) -> int:
        return getattr(self, action)

    def attribute_rating(self, attribute: str) -> int:
        """Number of the attribute's actions with at least one dot."""
        return sum(1 for action in ATTRIBUTE_ACTIONS[attribute] if self.rating(action) > 0)

    def with_rating(self, action: str, value: int) -> "CharacterRecord":
        """Return a validated copy with *action* set to *value*."""
        data = self.model_dump()
        data[action] = value
        return CharacterRecord(**data)
