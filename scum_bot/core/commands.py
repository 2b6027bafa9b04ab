"""Command engine: turns parsed intents into ledger operations and rolls."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import asdict, dataclass, is_dataclass
from typing import Any, Dict, Optional, Union

from scum_bot.db.models import CharacterRecord
from scum_bot.errors import ScumBotError
from scum_bot.utils.log_context import correlation_id_ctx, fmt_ctx
from scum_bot.utils.validators import validate_action_name, validate_attribute_name, validate_dice_count

from . import dice
from .dice import Entropy, RollOutcome
from .ledger import Ledger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RollIntent:
    """Action roll: one die per dot in the action, plus any bonus dice."""

    channel_id: str
    user_id: str
    attribute_name: str
    bonus_dice: int = 0


@dataclass(frozen=True)
class ResistanceIntent:
    """Resistance roll against insight, prowess or resolve."""

    channel_id: str
    user_id: str
    attribute: str


@dataclass(frozen=True)
class DiceIntent:
    """Plain pool of six-sided dice, not tied to a character."""

    dice: int


@dataclass(frozen=True)
class AdjustIntent:
    channel_id: str
    user_id: str
    attribute_name: str
    delta: int


@dataclass(frozen=True)
class ShowIntent:
    channel_id: str
    user_id: str


Intent = Union[RollIntent, ResistanceIntent, DiceIntent, AdjustIntent, ShowIntent]
CommandResult = Union[RollOutcome, int, CharacterRecord]


class CommandEngine:
    """Stateless dispatcher between callers and the ledger/dice engine.

    Errors are raised, not returned: ``UnknownAttribute``, ``StorageError``
    and ``InvalidDicePool`` all derive from ``ScumBotError`` and carry a
    stable ``key`` for the caller's reply.
    """

    def __init__(self, ledger: Ledger, rng: Optional[Entropy] = None) -> None:
        self._ledger = ledger
        self._rng = rng if rng is not None else dice.build_rng()

    async def execute(self, intent: Intent) -> CommandResult:
        """Run *intent* under a fresh correlation id and log its outcome."""
        token = correlation_id_ctx.set(str(uuid.uuid4()))
        intent_ctx: Dict[str, Any] = {"intent": type(intent).__name__}
        if is_dataclass(intent) and not isinstance(intent, type):
            intent_ctx.update(asdict(intent))
        logger.info(f"Intent received {fmt_ctx(intent_ctx)}")

        start_time = time.monotonic()
        try:
            return await self._dispatch(intent)
        except ScumBotError as e:
            logger.warning(f"Intent failed {fmt_ctx(intent_ctx)} error={e.key}")
            raise
        except Exception as e:
            logger.exception(f"Exception caught in intent {fmt_ctx(intent_ctx)} error={e}")
            raise
        finally:
            elapsed_ms = int((time.monotonic() - start_time) * 1000)
            logger.info(f"Intent processed {fmt_ctx(intent_ctx)} execution_time_ms={elapsed_ms}")
            correlation_id_ctx.reset(token)

    async def _dispatch(self, intent: Intent) -> CommandResult:
        if isinstance(intent, RollIntent):
            return await self.roll(intent.channel_id, intent.user_id, intent.attribute_name, intent.bonus_dice)
        if isinstance(intent, ResistanceIntent):
            return await self.resist(intent.channel_id, intent.user_id, intent.attribute)
        if isinstance(intent, DiceIntent):
            return self.roll_dice(intent.dice)
        if isinstance(intent, AdjustIntent):
            return await self.adjust(intent.channel_id, intent.user_id, intent.attribute_name, intent.delta)
        if isinstance(intent, ShowIntent):
            return await self.show(intent.channel_id, intent.user_id)
        raise TypeError(f"Unsupported intent: {type(intent).__name__}")

    async def roll(self, channel_id: str, user_id: str, attribute_name: str, bonus_dice: int = 0) -> RollOutcome:
        validate_action_name(attribute_name)
        validate_dice_count(bonus_dice, dice.MAXIMUM_DICE)
        rating = await self._ledger.get_attribute(channel_id, user_id, attribute_name)
        return dice.roll(rating + bonus_dice, self._rng)

    async def resist(self, channel_id: str, user_id: str, attribute: str) -> RollOutcome:
        attribute = validate_attribute_name(attribute)
        record = await self._ledger.show(channel_id, user_id)
        return dice.roll(record.attribute_rating(attribute), self._rng)

    def roll_dice(self, count: int) -> RollOutcome:
        validate_dice_count(count, dice.MAXIMUM_DICE)
        return dice.roll(count, self._rng)

    async def adjust(self, channel_id: str, user_id: str, attribute_name: str, delta: int) -> int:
        return await self._ledger.adjust_attribute(channel_id, user_id, attribute_name, delta)

    async def show(self, channel_id: str, user_id: str) -> CharacterRecord:
        return await self._ledger.show(channel_id, user_id)
