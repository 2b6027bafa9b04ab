"""Validation helpers used across the project."""

from __future__ import annotations

from scum_bot.db.models import ACTION_NAMES, ATTRIBUTE_ACTIONS
from scum_bot.errors import InvalidDicePool, UnknownAttribute


def _normalize(name: str) -> str:
    if not isinstance(name, str):
        return ""
    return name.strip().lower()


def validate_action_name(name: str) -> str:
    """Return the canonical action name or raise ``UnknownAttribute``.

    Matching ignores case and surrounding whitespace, so ``" Hack"`` is ``hack``.
    """
    normalized = _normalize(name)
    if normalized not in ACTION_NAMES:
        raise UnknownAttribute(name)
    return normalized


def validate_attribute_name(name: str) -> str:
    """Return the canonical attribute name (insight, prowess, resolve)."""
    normalized = _normalize(name)
    if normalized not in ATTRIBUTE_ACTIONS:
        raise UnknownAttribute(name)
    return normalized


def validate_dice_count(dice: int, maximum: int) -> int:
    """Ensure *dice* is a usable pool size (0..maximum)."""
    if dice < 0:
        raise InvalidDicePool("dice_pool_negative", dice)
    if dice > maximum:
        raise InvalidDicePool("dice_pool_too_large", dice)
    return dice
