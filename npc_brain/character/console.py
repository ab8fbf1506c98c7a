import logging
import time
from typing import Any, Callable, Dict

from npc_brain.core.directives import COMMAND_MARKER
from npc_brain.character.base import Character

logger = logging.getLogger(__name__)

# The Dry-Run Character. Prints directives instead of driving a body, and pretends to be busy for a while.


class ConsoleCharacter(Character):
    """
    Stand-in character for running the brain without a game client.
    "$" directives count as actions, everything else as speech.
    Busy time is proportional to the number of words.
    """

    def __init__(self, config: Dict[str, Any], clock: Callable[[], float] = time.monotonic):
        self._identity = config.get("character_id", "npc-1")
        self.words_per_second = config.get("words_per_second", 3.0)
        self.min_busy_s = config.get("min_busy_s", 0.5)
        self._clock = clock
        self._speaking_until = 0.0
        self._acting_until = 0.0
        self.transcript = []

    @property
    def identity(self) -> str:
        return self._identity

    async def is_speaking(self) -> bool:
        return self._clock() < self._speaking_until

    async def is_performing_action(self) -> bool:
        return self._clock() < self._acting_until

    async def submit(self, directive: str):
        logger.info(f"🎭 [{self._identity}] {directive}")
        self.transcript.append(directive)

        busy = max(self.min_busy_s, len(directive.split()) / self.words_per_second)
        if directive.startswith(COMMAND_MARKER):
            self._acting_until = self._clock() + busy
        else:
            self._speaking_until = self._clock() + busy
